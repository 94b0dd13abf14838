"""Newline transcoding for JSON string literals.

Two textual views of the same JSON document are supported:

* ``Representation.RAW`` -- a newline inside a string literal is written as
  the two characters ``\\`` ``n`` (what ``json.dumps`` produces).
* ``Representation.FRIENDLY`` -- the same newline is a real line break, so
  long prompt strings read like prose.

Everything outside string literals is copied unchanged.  Text that does not
look like JSON is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Representation(Enum):
    RAW = auto()
    FRIENDLY = auto()

    @property
    def other(self) -> Representation:
        if self is Representation.RAW:
            return Representation.FRIENDLY
        return Representation.RAW


@dataclass
class ScanState:
    """Per-pass scanner state; never shared between passes."""

    in_string: bool = False
    pending_backslashes: int = 0


@dataclass
class ScanResult:
    text: str
    offset: int  # length of ``text``, i.e. the mapped offset


def is_likely_json(text: object) -> bool:
    """Cheap check: trimmed text starts with ``{`` or ``[``.

    A leading byte order mark counts as whitespace.
    """
    if not text or not isinstance(text, str):
        return False
    stripped = text.lstrip().lstrip("\ufeff").lstrip()
    return stripped.startswith(("{", "["))


def _scan(text: str, target: Representation, stop: int | None = None) -> ScanResult:
    """Single left-to-right pass converting *text* into *target*.

    With *stop* the pass ends before ``text[stop]`` and the result holds the
    converted prefix; its length is the offset corresponding to *stop*.
    Pending backslashes are flushed at the end either way.
    """
    friendly = target is Representation.FRIENDLY
    end = len(text) if stop is None else max(0, min(stop, len(text)))
    state = ScanState()
    out: list[str] = []
    emit = out.append

    for i in range(end):
        ch = text[i]

        if not state.in_string:
            if ch == '"':
                state.in_string = True
            emit(ch)
            continue

        if ch == "\\":
            state.pending_backslashes += 1
            continue

        run = state.pending_backslashes
        state.pending_backslashes = 0

        if ch == '"':
            # odd run → escaped quote, string continues
            emit("\\" * run + '"')
            if run % 2 == 0:
                state.in_string = False
        elif friendly and ch == "n" and run:
            emit("\\" * (run - 1) + "\n")
        elif not friendly and ch == "\r":
            pass
        elif not friendly and ch == "\n":
            emit("\\" * run + "\\n")
        else:
            emit("\\" * run + ch)

    if state.pending_backslashes:
        emit("\\" * state.pending_backslashes)

    result = "".join(out)
    return ScanResult(text=result, offset=len(result))


def transcode(text: str, target: Representation) -> str:
    """Convert *text* into *target*.  Identity for non-JSON text."""
    if not is_likely_json(text):
        return text
    return _scan(text, target).text


def map_offset(text: str, offset: int, target: Representation) -> int:
    """Map *offset* in *text* to the matching offset after ``transcode``.

    *text* is in the representation opposite to *target*.
    """
    if not is_likely_json(text):
        return offset
    return _scan(text, target, stop=offset).offset


def to_friendly(text: str) -> str:
    """``\\n`` escapes inside strings → real line breaks."""
    return transcode(text, Representation.FRIENDLY)


def to_raw(text: str) -> str:
    """Real line breaks inside strings → ``\\n`` escapes.

    Carriage returns inside strings are dropped and cannot be restored.
    """
    return transcode(text, Representation.RAW)


def map_raw_to_friendly(text: str, offset: int) -> int:
    return map_offset(text, offset, Representation.FRIENDLY)


def map_friendly_to_raw(text: str, offset: int) -> int:
    return map_offset(text, offset, Representation.RAW)
