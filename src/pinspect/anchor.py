"""Newline-insensitive anchors for relocating a viewport position.

An anchor is the first few characters at an offset with every line break
and every literal ``\\n`` pair left out, so the same anchor is found in both
the raw and the friendly view of a document.
"""

from __future__ import annotations

DEFAULT_ANCHOR_LENGTH = 30
DEFAULT_SEARCH_RADIUS = 4096

_LINE_BREAKS = frozenset("\r\n")


def _skip_width(text: str, i: int) -> int:
    """Width of the zero-width unit at *i* (line break or ``\\n`` pair), else 0."""
    ch = text[i]
    if ch in _LINE_BREAKS:
        return 1
    if ch == "\\" and text[i + 1 : i + 2] == "n":
        return 2
    return 0


def build_anchor(text: str, start: int, length: int = DEFAULT_ANCHOR_LENGTH) -> str:
    """Collect up to *length* characters from *start*, skipping newlines."""
    out: list[str] = []
    i = max(0, start)
    n = len(text)
    while i < n and len(out) < length:
        skip = _skip_width(text, i)
        if skip:
            i += skip
            continue
        out.append(text[i])
        i += 1
    return "".join(out)


def _match_at(text: str, anchor: str, start: int) -> int:
    """Match *anchor* beginning at *start*.

    Returns the index of the first matched character, or -1.
    """
    n = len(text)
    ti = start
    ai = 0
    first = -1
    while ti < n and ai < len(anchor):
        skip = _skip_width(text, ti)
        if skip:
            ti += skip
            continue
        if text[ti] != anchor[ai]:
            return -1
        if first == -1:
            first = ti
        ai += 1
        ti += 1
    return first if ai == len(anchor) else -1


def locate_anchor(
    text: str, anchor: str, guess: int, radius: int = DEFAULT_SEARCH_RADIUS
) -> int:
    """Like ``find_anchor`` but returns -1 when nothing matched."""
    if not anchor:
        return -1
    center = max(0, min(guess, len(text)))
    lower = max(0, guess - radius)
    upper = min(len(text), guess + radius)

    # forward first, then backward; nearest match in that order wins
    for s in range(center, upper + 1):
        idx = _match_at(text, anchor, s)
        if idx != -1:
            return idx
    for s in range(min(center, upper), lower - 1, -1):
        idx = _match_at(text, anchor, s)
        if idx != -1:
            return idx
    return -1


def find_anchor(
    text: str, anchor: str, guess: int, radius: int = DEFAULT_SEARCH_RADIUS
) -> int:
    """Find *anchor* near *guess*; fall back to *guess* when not found."""
    if not anchor:
        return guess
    idx = locate_anchor(text, anchor, guess, radius)
    return guess if idx == -1 else idx
