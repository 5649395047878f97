"""Move token notation.

External grammar::

    token   := cell ( '-' cell | ( 'x' cell )* )
    cell    := [a-z] [0-9]+

Internally moves are tagged variants (``Selection``, ``Slide``,
``CaptureChain``); strings only exist at the interface boundary.
"""

from __future__ import annotations

import re

from .errors import NotationError
from .models import CaptureChain, MoveToken, PartialToken, Placement, Selection, Slide

__all__ = [
    "is_hop_prefix",
    "normalize_move",
    "parse_move",
    "serialize_move",
]

_CELL = r"[a-z][0-9]+"
_TOKEN_RE = re.compile(rf"{_CELL}(?:[-x]{_CELL})*")
_CELL_RE = re.compile(_CELL)
# A separator always sits between a rank digit and a file letter, so the
# file letter 'x' is never mistaken for a capture mark.
_SEP_RE = re.compile(r"(?<=[0-9])[-x](?=[a-z])")


def normalize_move(text: str) -> str:
    """Lowercase, drop whitespace and promotion marks (``*``)."""
    text = text.lower()
    text = re.sub(r"\s+", "", text)
    return text.replace("*", "")


def parse_move(text: str) -> PartialToken:
    """Parse a (possibly partial) move token.

    Raises:
        NotationError: if the token does not match the grammar, mixes
            slide and capture separators, or chains more than one slide.
    """
    token = normalize_move(text)
    if not _TOKEN_RE.fullmatch(token):
        raise NotationError(f"Malformed move token: {text!r}", context={"move": text})

    cells = _CELL_RE.findall(token)
    seps = _SEP_RE.findall(token)
    if len(seps) != len(cells) - 1:
        raise NotationError(f"Malformed move token: {text!r}", context={"move": text})

    if not seps:
        return Selection(start=cells[0])
    if all(sep == "x" for sep in seps):
        return CaptureChain(cells=tuple(cells))
    if seps == ["-"]:
        return Slide(start=cells[0], to=cells[1])
    raise NotationError(
        f"A move is either one slide or a chain of captures: {text!r}",
        context={"move": text},
    )


def serialize_move(move: PartialToken) -> str:
    return str(move)


def is_hop_prefix(candidate: PartialToken, entry: MoveToken) -> bool:
    """Return True if ``candidate`` is ``entry`` or a hop-wise prefix of it."""
    if isinstance(candidate, Selection):
        return entry.cells[0] == candidate.start
    if isinstance(candidate, (Slide, Placement)):
        return candidate == entry
    if not isinstance(entry, CaptureChain):
        return False
    n = len(candidate.cells)
    return entry.cells[:n] == candidate.cells
