"""Modal inspector editor widget."""

from __future__ import annotations

import json
import unicodedata
from dataclasses import dataclass
from enum import Enum, auto

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from pinspect._selection import SelectionMixin
from pinspect.config import InspectorConfig, PreferenceStore
from pinspect.session import PositionSession, ToggleResult
from pinspect.transcode import Representation, is_likely_json


class EditorMode(Enum):
    NORMAL = auto()
    INSERT = auto()
    COMMAND = auto()


class InspectorEditor(SelectionMixin, Widget, can_focus=True):
    """A modal prompt editor that can switch JSON line-break views.

    The widget is both the editable surface and the line locator of a
    :class:`~pinspect.session.PositionSession`.

    Supported commands:
      NORMAL: h j k l  w b  0 $ ^  gg G  PgUp/PgDn  ctrl+e ctrl+y
              i I a A  x dd  v y d  p  u ctrl+r
      INSERT: typing / Backspace / Enter / Tab / Escape
      COMMAND: :w :q :cancel :nl :fmt
    """

    DEFAULT_CSS = """
    InspectorEditor {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class SaveRequested(Message):
        content: str  # always raw

    @dataclass
    class DiscardRequested(Message):
        pass

    @dataclass
    class CancelRequested(Message):
        pass

    @dataclass
    class NewlinesToggled(Message):
        result: ToggleResult

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        initial_content: str = "",
        *,
        config: InspectorConfig | None = None,
        store: PreferenceStore | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.config: InspectorConfig = config or InspectorConfig()
        self.store: PreferenceStore | None = store
        self.lines: list[str] = initial_content.split("\n") if initial_content else [""]
        self.cursor_row: int = 0
        self.cursor_col: int = 0
        self._mode: EditorMode = EditorMode.NORMAL
        self.command_buffer: str = ""
        self.pending: str = ""
        self.status_msg: str = ""
        self.undo_stack: list[tuple[list[str], int, int]] = []
        self.redo_stack: list[tuple[list[str], int, int]] = []
        self.yank_buffer: list[str] = []
        self._yank_type: str = "char"  # "char" | "line"
        # Viewport: 첫 줄 index + 그 줄에서 건너뛴 wrap row 수
        self._scroll_top: int = 0
        self._scroll_skip: int = 0
        # 프로그램적 스크롤 후 다음 키 입력까지 커서 추적 중지
        self._scroll_pinned: bool = False
        self._last_avail: int = 80
        self._char_width_cache: dict[str, int] = {}
        # Visual mode 상태
        self._visual_mode: str = ""  # "" | "v"
        self._visual_anchor_row: int = 0
        self._visual_anchor_col: int = 0

    # -- Helpers -----------------------------------------------------------

    def _save_undo(self) -> None:
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        if len(self.undo_stack) > 200:
            self.undo_stack.pop(0)
        if self.redo_stack:
            self.redo_stack.clear()

    def _clamp_cursor(self) -> None:
        self.cursor_row = max(0, min(self.cursor_row, len(self.lines) - 1))
        line_len = len(self.lines[self.cursor_row])
        if self._mode == EditorMode.NORMAL and not self._visual_mode:
            max_col = max(0, line_len - 1) if line_len else 0
        else:
            max_col = line_len
        self.cursor_col = max(0, min(self.cursor_col, max_col))

    def _char_width(self, ch: str) -> int:
        """Return display width of a character (2 for fullwidth/wide)."""
        if ch < "\u0100":
            return 1
        w = self._char_width_cache.get(ch)
        if w is None:
            w = 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1
            self._char_width_cache[ch] = w
        return w

    def _make_segments(self, line: str, avail: int) -> list[tuple[int, int]]:
        """Break *line* into segments fitting within *avail* display columns."""
        if not line:
            return [(0, 0)]
        if line.isascii():
            return [(s, min(s + avail, len(line))) for s in range(0, len(line), avail)]
        segs: list[tuple[int, int]] = []
        seg_start = 0
        w = 0
        for i, ch in enumerate(line):
            cw = self._char_width(ch)
            if w + cw > avail and i > seg_start:
                segs.append((seg_start, i))
                seg_start = i
                w = cw
            else:
                w += cw
        segs.append((seg_start, len(line)))
        return segs

    def _wrap_rows(self, line: str, avail: int) -> int:
        """Return the number of display rows a line occupies when wrapped."""
        return len(self._make_segments(line, avail))

    def _segment_index(self, line: str, col: int, avail: int) -> int:
        """*col*이 속한 wrap segment index (0-based)."""
        segs = self._make_segments(line, avail)
        for si, (_s_start, s_end) in enumerate(segs):
            if col < s_end:
                return si
        return len(segs) - 1

    def _gutter_width(self) -> int:
        return max(3, len(str(len(self.lines)))) + 1

    def _text_width(self) -> int:
        """마지막 render 기준 텍스트 영역 폭 (mount 전에는 기본값)."""
        return self._last_avail

    def _visible_height(self) -> int:
        return max(1, self.content_region.height - 2)

    def _ensure_cursor_visible(self, avail: int) -> None:
        vh = self._visible_height()
        if self.cursor_row < self._scroll_top:
            self._scroll_top = self.cursor_row
            self._scroll_skip = 0
        cursor_dy = self._segment_index(
            self.lines[self.cursor_row], self.cursor_col, avail
        )
        if self.cursor_row == self._scroll_top and cursor_dy < self._scroll_skip:
            self._scroll_skip = 0

        rows_before = sum(
            self._wrap_rows(self.lines[i], avail)
            for i in range(self._scroll_top, self.cursor_row)
        )
        rows_before -= self._scroll_skip
        while rows_before + cursor_dy >= vh and self._scroll_top < self.cursor_row:
            top_rows = self._wrap_rows(self.lines[self._scroll_top], avail)
            rows_before -= top_rows - self._scroll_skip
            self._scroll_skip = 0
            self._scroll_top += 1

    def _scroll_cursor_to_top(self) -> None:
        """Position viewport so cursor is at the top of the screen."""
        self._scroll_top = self.cursor_row
        self._scroll_skip = 0

    # -- Public API --------------------------------------------------------

    def get_content(self) -> str:
        return "\n".join(self.lines)

    def set_content(self, content: str) -> None:
        self.lines = content.split("\n") if content else [""]
        self.cursor_row = 0
        self.cursor_col = 0
        self._scroll_top = 0
        self._scroll_skip = 0
        self._visual_mode = ""
        self.refresh()

    # EditableSurface

    def get_text(self) -> str:
        return self.get_content()

    def set_text(self, text: str) -> None:
        self.set_content(text)

    # LineLocator

    def first_fully_visible_offset(self) -> int:
        """Offset of the first character on the top display row."""
        top = max(0, min(self._scroll_top, len(self.lines) - 1))
        line = self.lines[top]
        segs = self._make_segments(line, self._text_width())
        s_start, _ = segs[min(self._scroll_skip, len(segs) - 1)]
        # wrap이 "\" | "n" 사이를 자른 경우 escape pair 시작으로 한 칸 당김
        if s_start and line[s_start - 1 : s_start + 1] == "\\n":
            s_start -= 1
        return self.position_to_offset(top, s_start)

    def scroll_to_offset_fully_visible(self, offset: int) -> None:
        """Put the display row holding *offset* at the top of the viewport."""
        row, col = self.offset_to_position(offset)
        self._scroll_top = row
        self._scroll_skip = self._segment_index(self.lines[row], col, self._text_width())
        self._scroll_pinned = True
        self.refresh()

    # -- Line break views --------------------------------------------------

    @property
    def representation(self) -> Representation:
        return self.config.representation

    @property
    def is_json(self) -> bool:
        return is_likely_json(self.get_content())

    def toggle_newlines(self) -> ToggleResult:
        """Switch between raw ``\\n`` escapes and real line breaks in place."""
        session = PositionSession(self, self, self.config, self.store)
        result = session.toggle()
        self.config = result.config
        # undo 기록은 이전 view 기준이므로 폐기
        self.undo_stack.clear()
        self.redo_stack.clear()
        if self.representation is Representation.FRIENDLY:
            self.status_msg = "line breaks shown"
        else:
            self.status_msg = "raw \\n shown"
        self.post_message(self.NewlinesToggled(result))
        return result

    def final_content(self) -> str:
        """Content in the raw view, as it is handed back to the caller."""
        return PositionSession(self, self, self.config).final_text()

    # =====================================================================
    # Rendering
    # =====================================================================

    _MODE_STYLE = {
        EditorMode.NORMAL: "bold white on dark_green",
        EditorMode.INSERT: "bold white on dark_blue",
        EditorMode.COMMAND: "bold white on dark_red",
    }
    _SELECT_STYLE = "on dark_blue"

    def _selected_cols(self, line_idx: int, line_len: int) -> range:
        if not self._visual_mode:
            return range(0)
        sr, sc, er, ec = self._visual_selection_range()
        if not sr <= line_idx <= er:
            return range(0)
        start = sc if line_idx == sr else 0
        end = ec + 1 if line_idx == er else line_len
        return range(start, min(end, line_len))

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 3 or width < 10:
            return Text("(too small)")

        content_height = height - 2
        prefix_w = self._gutter_width()
        ln_width = prefix_w - 1
        avail = max(1, width - prefix_w)
        self._last_avail = avail

        if not self._scroll_pinned:
            self._ensure_cursor_visible(avail)

        lines = self.lines
        cursor_row = self.cursor_row
        cursor_col = self.cursor_col
        result = Text()
        result_append = Text.append
        rows_used = 0
        line_idx = self._scroll_top
        num_lines = len(lines)
        gutter_pad = " " * prefix_w

        while rows_used < content_height and line_idx < num_lines:
            line = lines[line_idx]
            line_len = len(line)
            is_cursor_line = line_idx == cursor_row
            selected = self._selected_cols(line_idx, line_len)

            segs = self._make_segments(line, avail)
            if is_cursor_line and cursor_col >= line_len and line:
                ls, le = segs[-1]
                last_w = sum(self._char_width(line[c]) for c in range(ls, le))
                if last_w + 1 > avail:
                    segs.append((line_len, line_len))
            if line_idx == self._scroll_top and self._scroll_skip:
                segs = segs[min(self._scroll_skip, len(segs) - 1) :]

            for si, (s_start, s_end) in enumerate(segs):
                if rows_used >= content_height:
                    break
                if si == 0 or rows_used == 0:
                    result_append(
                        result, f"{line_idx + 1:>{ln_width}} ", style="dim cyan"
                    )
                else:
                    result_append(result, gutter_pad)
                for col in range(s_start, s_end):
                    style = self._SELECT_STYLE if col in selected else ""
                    if is_cursor_line and col == cursor_col:
                        style = f"reverse {style}".strip()
                    result_append(result, line[col], style=style)
                if is_cursor_line and cursor_col >= line_len and si == len(segs) - 1:
                    result_append(result, " ", style="reverse")
                result_append(result, "\n")
                rows_used += 1

            line_idx += 1

        if rows_used < content_height:
            tilde_line = f"{'~':>{prefix_w - 1}} \n"
            while rows_used < content_height:
                result_append(result, tilde_line, style="dim blue")
                rows_used += 1

        # status bar
        if self._visual_mode:
            mode_label = " VISUAL "
            mode_style = "bold white on dark_orange"
        else:
            mode_label = f" {self._mode.name} "
            mode_style = self._MODE_STYLE[self._mode]
        result_append(result, mode_label, style=mode_style)

        view_label = ""
        if self.is_json:
            view_label = " NL " if self.representation is Representation.FRIENDLY else " \\n "
            result_append(result, view_label, style="bold white on grey37")

        if self.pending:
            result_append(result, f"  {self.pending}", style="bold yellow")

        status_msg = self.status_msg
        pos = f" Ln {cursor_row + 1}/{num_lines}, Col {cursor_col + 1} "
        spacer_len = max(
            0,
            width
            - len(mode_label)
            - len(view_label)
            - len(pos)
            - len(status_msg)
            - 4,
        )
        result_append(result, f"  {status_msg}")
        if spacer_len:
            result_append(result, " " * spacer_len)
        result_append(result, pos, style="bold")

        if self._mode == EditorMode.COMMAND:
            result_append(result, f"\n:{self.command_buffer}", style="bold yellow")
            result_append(result, " ", style="reverse")
        else:
            result_append(result, "\n")

        return result

    # =====================================================================
    # Key handling
    # =====================================================================

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._scroll_pinned = False

        if self._mode == EditorMode.NORMAL:
            self._handle_normal(event)
        elif self._mode == EditorMode.INSERT:
            self._handle_insert(event)
        elif self._mode == EditorMode.COMMAND:
            self._handle_command(event)

        self._clamp_cursor()
        self.refresh()

    # -- NORMAL ------------------------------------------------------------

    def _enter_insert(self) -> None:
        self._visual_mode = ""
        self._mode = EditorMode.INSERT
        self.status_msg = "-- INSERT --"

    def _handle_normal(self, event: events.Key) -> None:
        key = event.key
        char = event.character or ""

        if key == "escape" and self._visual_mode:
            self._visual_mode = ""
            self.status_msg = ""
            return

        if self.pending:
            self._handle_pending(char, key)
            return

        if char == "v":
            if self._visual_mode:
                self._visual_mode = ""
                self.status_msg = ""
            else:
                self._visual_mode = "v"
                self._visual_anchor_row = self.cursor_row
                self._visual_anchor_col = self.cursor_col
                self.status_msg = "-- VISUAL --"
            return

        # movement
        if char == "h" or key == "left":
            self.cursor_col -= 1
        elif char == "j" or key == "down":
            self.cursor_row += 1
        elif char == "k" or key == "up":
            self.cursor_row -= 1
        elif char == "l" or key == "right":
            self.cursor_col += 1
        elif char == "w":
            self._move_word_forward()
        elif char == "b":
            self._move_word_backward()
        elif char == "0":
            self.cursor_col = 0
        elif char == "$" or key == "end":
            self.cursor_col = max(0, len(self.lines[self.cursor_row]) - 1)
        elif char == "^" or key == "home":
            line = self.lines[self.cursor_row]
            self.cursor_col = len(line) - len(line.lstrip())
        elif char == "G":
            self.cursor_row = len(self.lines) - 1
            self._scroll_cursor_to_top()
        elif key == "pagedown" or key == "ctrl+f":
            self.cursor_row += self._visible_height()
        elif key == "pageup" or key == "ctrl+b":
            self.cursor_row -= self._visible_height()
        elif key == "ctrl+d":
            self.cursor_row += self._visible_height() // 2
        elif key == "ctrl+u":
            self.cursor_row -= self._visible_height() // 2
        elif key == "ctrl+e":
            self._scroll_top = min(self._scroll_top + 1, len(self.lines) - 1)
            self._scroll_skip = 0
        elif key == "ctrl+y":
            self._scroll_top = max(self._scroll_top - 1, 0)
            self._scroll_skip = 0

        # visual operators
        elif self._visual_mode and char in ("d", "x"):
            self._delete_selection()
        elif self._visual_mode and char == "y":
            self._yank_selection()

        # enter insert mode
        elif char == "i":
            self._enter_insert()
        elif char == "I":
            line = self.lines[self.cursor_row]
            self.cursor_col = len(line) - len(line.lstrip())
            self._enter_insert()
        elif char == "a":
            self.cursor_col += 1
            self._enter_insert()
        elif char == "A":
            self.cursor_col = len(self.lines[self.cursor_row])
            self._enter_insert()

        # single-key edits
        elif char == "x":
            self._save_undo()
            line = self.lines[self.cursor_row]
            if line and self.cursor_col < len(line):
                self.lines[self.cursor_row] = (
                    line[: self.cursor_col] + line[self.cursor_col + 1 :]
                )
        elif char == "p":
            self._paste_after()
        elif char == "u":
            self._undo()
        elif key == "ctrl+r":
            self._redo()

        # multi-key starters
        elif char in ("d", "g"):
            self.pending = char

        # command mode
        elif char == ":":
            self._visual_mode = ""
            self._mode = EditorMode.COMMAND
            self.command_buffer = ""
            self.status_msg = ""

    # -- Pending multi-char ------------------------------------------------

    def _handle_pending(self, char: str, key: str) -> None:
        if key == "escape" or not char:
            self.pending = ""
            self.status_msg = ""
            return

        combo = self.pending + char
        self.pending = ""

        if combo == "dd":
            self._save_undo()
            self.yank_buffer = [self.lines[self.cursor_row]]
            self._yank_type = "line"
            if len(self.lines) > 1:
                self.lines.pop(self.cursor_row)
                if self.cursor_row >= len(self.lines):
                    self.cursor_row = len(self.lines) - 1
            else:
                self.lines[0] = ""
            self.cursor_col = 0
            self.status_msg = "line deleted"
        elif combo == "gg":
            self.cursor_row = 0
            self.cursor_col = 0
            self._scroll_cursor_to_top()
        else:
            self.status_msg = f"unknown: {combo}"

    # -- INSERT ------------------------------------------------------------

    def _handle_insert(self, event: events.Key) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.cursor_col = max(0, self.cursor_col - 1)
            self.status_msg = ""
            return

        if key == "backspace":
            self._save_undo()
            if self.cursor_col > 0:
                line = self.lines[self.cursor_row]
                self.lines[self.cursor_row] = (
                    line[: self.cursor_col - 1] + line[self.cursor_col :]
                )
                self.cursor_col -= 1
            elif self.cursor_row > 0:
                prev = self.lines[self.cursor_row - 1]
                self.cursor_col = len(prev)
                self.lines[self.cursor_row - 1] = prev + self.lines[self.cursor_row]
                self.lines.pop(self.cursor_row)
                self.cursor_row -= 1
            return

        if key == "enter":
            self._save_undo()
            line = self.lines[self.cursor_row]
            self.lines[self.cursor_row] = line[: self.cursor_col]
            self.lines.insert(self.cursor_row + 1, line[self.cursor_col :])
            self.cursor_row += 1
            self.cursor_col = 0
            return

        if key == "tab":
            self._save_undo()
            line = self.lines[self.cursor_row]
            self.lines[self.cursor_row] = (
                line[: self.cursor_col] + "    " + line[self.cursor_col :]
            )
            self.cursor_col += 4
            return

        if key == "end":
            self.cursor_col = len(self.lines[self.cursor_row])
            return
        if key == "home":
            self.cursor_col = 0
            return

        if key in ("left", "right", "up", "down"):
            delta = {"left": (0, -1), "right": (0, 1), "up": (-1, 0), "down": (1, 0)}
            dr, dc = delta[key]
            self.cursor_row += dr
            self.cursor_col += dc
            return

        if char and char.isprintable():
            self._save_undo()
            line = self.lines[self.cursor_row]
            self.lines[self.cursor_row] = (
                line[: self.cursor_col] + char + line[self.cursor_col :]
            )
            self.cursor_col += 1

    # -- COMMAND -----------------------------------------------------------

    def _handle_command(self, event: events.Key) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self.status_msg = ""
            return

        if key == "enter":
            cmd = self.command_buffer.strip()
            self._mode = EditorMode.NORMAL
            self.command_buffer = ""
            self._exec_command(cmd)
            return

        if key == "backspace":
            if self.command_buffer:
                self.command_buffer = self.command_buffer[:-1]
            else:
                self._mode = EditorMode.NORMAL
            return

        if char and char.isprintable():
            self.command_buffer += char

    def _exec_command(self, cmd: str) -> None:
        stripped = cmd.strip()

        if stripped.isdigit():
            self.cursor_row = max(0, min(int(stripped) - 1, len(self.lines) - 1))
            self.cursor_col = 0
            self._scroll_cursor_to_top()
            return

        if stripped in ("w", "wq", "x"):
            self.post_message(self.SaveRequested(content=self.final_content()))
        elif stripped in ("q", "q!"):
            self.post_message(self.DiscardRequested())
        elif stripped == "cancel":
            self.post_message(self.CancelRequested())
        elif stripped == "nl":
            if not self.is_json:
                self.status_msg = "not JSON: nothing to toggle"
            else:
                self.toggle_newlines()
        elif stripped in ("fmt", "format"):
            self._format_json()
        else:
            self.status_msg = f"unknown command: :{cmd}"

    # -- JSON operations ---------------------------------------------------

    def _format_json(self) -> None:
        if self.representation is Representation.FRIENDLY and self.is_json:
            self.status_msg = "cannot format: switch to raw view (:nl) first"
            return
        content = self.get_content()
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            self.status_msg = f"cannot format: {e.msg} (line {e.lineno})"
            return
        formatted = json.dumps(parsed, indent=4, ensure_ascii=False)
        self._save_undo()
        self.lines = formatted.split("\n")
        self.cursor_row = 0
        self.cursor_col = 0
        self._scroll_top = 0
        self._scroll_skip = 0
        self.status_msg = "formatted"

    # -- Editing helpers ---------------------------------------------------

    def _move_word_forward(self) -> None:
        line = self.lines[self.cursor_row]
        col = self.cursor_col
        n = len(line)
        while col < n and (line[col].isalnum() or line[col] == "_"):
            col += 1
        while col < n and not (line[col].isalnum() or line[col] == "_"):
            col += 1
        if col >= n and self.cursor_row < len(self.lines) - 1:
            self.cursor_row += 1
            nxt = self.lines[self.cursor_row]
            self.cursor_col = len(nxt) - len(nxt.lstrip())
        else:
            self.cursor_col = col

    def _move_word_backward(self) -> None:
        line = self.lines[self.cursor_row]
        col = self.cursor_col
        if col == 0 and self.cursor_row > 0:
            self.cursor_row -= 1
            self.cursor_col = max(0, len(self.lines[self.cursor_row]) - 1)
            return
        col -= 1
        while col > 0 and not (line[col].isalnum() or line[col] == "_"):
            col -= 1
        while col > 0 and (line[col - 1].isalnum() or line[col - 1] == "_"):
            col -= 1
        self.cursor_col = max(0, col)

    def _paste_after(self) -> None:
        if not self.yank_buffer:
            return
        self._save_undo()
        if self._yank_type == "line":
            for i, line in enumerate(self.yank_buffer):
                self.lines.insert(self.cursor_row + 1 + i, line)
            self.cursor_row += 1
            self.cursor_col = 0
            return
        text = self.get_content()
        line = self.lines[self.cursor_row]
        col = min(self.cursor_col + 1, len(line))
        at = self.position_to_offset(self.cursor_row, col)
        piece = self.yank_buffer[0]
        self.lines = (text[:at] + piece + text[at:]).split("\n")
        self.cursor_row, self.cursor_col = self.offset_to_position(
            at + max(0, len(piece) - 1)
        )

    def _undo(self) -> None:
        if not self.undo_stack:
            self.status_msg = "already at oldest change"
            return
        self.redo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.undo_stack.pop()
        self.status_msg = "undone"

    def _redo(self) -> None:
        if not self.redo_stack:
            self.status_msg = "already at newest change"
            return
        self.undo_stack.append((self.lines[:], self.cursor_row, self.cursor_col))
        self.lines, self.cursor_row, self.cursor_col = self.redo_stack.pop()
        self.status_msg = "redone"
