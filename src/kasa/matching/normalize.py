"""Canonical text form shared by every comparison in the engine."""

from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Strip accents, lowercase, map punctuation to spaces, collapse whitespace.

    >>> normalize("  Prélèvement  SEPA/EDF ")
    'prelevement sepa edf'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    lowered = _NON_ALNUM.sub(" ", stripped.lower())
    return _WHITESPACE.sub(" ", lowered).strip()
