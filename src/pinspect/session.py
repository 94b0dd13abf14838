"""Toggle orchestration: keep the reading position across a view change."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .anchor import build_anchor, find_anchor
from .config import InspectorConfig, PreferenceStore
from .transcode import Representation, is_likely_json, map_offset, transcode

logger = logging.getLogger(__name__)


class EditableSurface(Protocol):
    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def get_selection(self) -> tuple[int, int]: ...

    def set_selection(self, start: int, end: int) -> None:
        """Select ``[start, end)``; out-of-range values are clamped."""
        ...


class LineLocator(Protocol):
    def first_fully_visible_offset(self) -> int: ...

    def scroll_to_offset_fully_visible(self, offset: int) -> None: ...


@dataclass
class ToggleResult:
    text: str
    representation: Representation  # representation of ``text``
    top_offset: int  # first visible offset before the toggle
    mapped_offset: int  # best guess from the offset mapper
    target_offset: int  # where the view was scrolled to
    anchor: str
    anchored: bool  # False → fell back to ``mapped_offset``
    selection: tuple[int, int]
    config: InspectorConfig


class PositionSession:
    """Switch a surface between the raw and friendly view.

    The session owns no text; it reads from and writes to *surface* and
    *locator*.  *config* says which view is showing and is replaced by each
    :meth:`toggle`; when a *store* is given the new value is persisted.
    """

    def __init__(
        self,
        surface: EditableSurface,
        locator: LineLocator,
        config: InspectorConfig,
        store: PreferenceStore | None = None,
    ) -> None:
        self.surface = surface
        self.locator = locator
        self.config = config
        self.store = store

    @property
    def representation(self) -> Representation:
        return self.config.representation

    def toggle(self) -> ToggleResult:
        config = self.config
        current = self.surface.get_text()
        target = config.representation.other
        is_json = is_likely_json(current)

        top = self.locator.first_fully_visible_offset()
        anchor = build_anchor(current, top, config.anchor_length)
        sel_start, sel_end = self.surface.get_selection()

        if is_json:
            mapped = map_offset(current, top, target)
            new_text = transcode(current, target)
            selection = (
                map_offset(current, sel_start, target),
                map_offset(current, sel_end, target),
            )
        else:
            mapped = top
            new_text = current
            selection = (sel_start, sel_end)

        target_offset = find_anchor(new_text, anchor, mapped, config.search_radius)
        anchored = bool(anchor) and (
            build_anchor(new_text, target_offset, len(anchor)) == anchor
        )
        if not anchored:
            logger.debug(
                "anchor %r not found near %d; using mapped offset", anchor, mapped
            )

        self.surface.set_text(new_text)
        self.locator.scroll_to_offset_fully_visible(target_offset)
        self.surface.set_selection(*selection)

        self.config = config.with_representation(target)
        if self.store is not None:
            self.store.save(self.config)
        logger.debug(
            "toggled to %s: top=%d mapped=%d target=%d",
            target.name,
            top,
            mapped,
            target_offset,
        )
        return ToggleResult(
            text=new_text,
            representation=target,
            top_offset=top,
            mapped_offset=mapped,
            target_offset=target_offset,
            anchor=anchor,
            anchored=anchored,
            selection=selection,
            config=self.config,
        )

    def final_text(self) -> str:
        """Surface text in the raw view, as it is saved."""
        text = self.surface.get_text()
        if self.config.representation is Representation.FRIENDLY:
            return transcode(text, Representation.RAW)
        return text

