"""Offset and selection mixin for InspectorEditor."""

from __future__ import annotations


class SelectionMixin:
    """Flat text offsets <-> (row, col), and the visual selection as a span."""

    def offset_to_position(self, offset: int) -> tuple[int, int]:
        """flat offset → (row, col). 범위 밖 값은 문서 끝/처음으로 clamp."""
        offset = max(0, offset)
        for row, line in enumerate(self.lines):
            if offset <= len(line):
                return (row, offset)
            offset -= len(line) + 1  # "\n"
        last = len(self.lines) - 1
        return (last, len(self.lines[last]))

    def position_to_offset(self, row: int, col: int) -> int:
        """(row, col) → flat offset."""
        row = max(0, min(row, len(self.lines) - 1))
        col = max(0, min(col, len(self.lines[row])))
        return sum(len(line) + 1 for line in self.lines[:row]) + col

    def _text_length(self) -> int:
        return sum(len(line) for line in self.lines) + len(self.lines) - 1

    def _visual_selection_range(self) -> tuple[int, int, int, int]:
        """선택 범위 반환: (start_row, start_col, end_row, end_col). end 포함."""
        ar, ac = self._visual_anchor_row, self._visual_anchor_col
        cr, cc = self.cursor_row, self.cursor_col
        if (ar, ac) <= (cr, cc):
            return (ar, ac, cr, cc)
        return (cr, cc, ar, ac)

    def get_selection(self) -> tuple[int, int]:
        """Selected span as ``(start, end)`` offsets, end exclusive.

        Without a visual selection the span is empty at the cursor.
        """
        if not self._visual_mode:
            pos = self.position_to_offset(self.cursor_row, self.cursor_col)
            return (pos, pos)
        sr, sc, er, ec = self._visual_selection_range()
        start = self.position_to_offset(sr, sc)
        end = min(self.position_to_offset(er, ec) + 1, self._text_length())
        return (start, max(start, end))

    def set_selection(self, start: int, end: int) -> None:
        """Select ``[start, end)``. 범위 밖이면 조용히 clamp."""
        length = self._text_length()
        start = max(0, min(start, length))
        end = max(0, min(end, length))
        if end < start:
            start, end = end, start
        if start == end:
            self._visual_mode = ""
            self.cursor_row, self.cursor_col = self.offset_to_position(start)
            return
        self._visual_mode = "v"
        self._visual_anchor_row, self._visual_anchor_col = self.offset_to_position(
            start
        )
        self.cursor_row, self.cursor_col = self.offset_to_position(end - 1)

    def _selected_text(self) -> str:
        start, end = self.get_selection()
        return self.get_text()[start:end]

    def _delete_selection(self) -> None:
        """Char-wise visual 선택 삭제 (v 모드)."""
        sr, sc, er, ec = self._visual_selection_range()
        self._save_undo()
        self.yank_buffer = [self._selected_text()]
        self._yank_type = "char"
        if sr == er:
            line = self.lines[sr]
            self.lines[sr] = line[:sc] + line[ec + 1 :]
        else:
            before = self.lines[sr][:sc]
            after = self.lines[er][ec + 1 :]
            self.lines[sr] = before + after
            del self.lines[sr + 1 : er + 1]
        self.cursor_row = sr
        self.cursor_col = sc
        self._visual_mode = ""
        self.status_msg = "deleted"

    def _yank_selection(self) -> None:
        sr, sc, _er, _ec = self._visual_selection_range()
        self.yank_buffer = [self._selected_text()]
        self._yank_type = "char"
        self.cursor_row = sr
        self.cursor_col = sc
        self._visual_mode = ""
        self.status_msg = "yanked"
