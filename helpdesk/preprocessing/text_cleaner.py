"""Shared text preprocessing utilities."""

from __future__ import annotations

import re
import unicodedata

# ── Compiled patterns (compiled once at import time) ─────────────────────────
_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_MULTI = re.compile(r"\s+")


def fold_accents(text: str) -> str:
    """Decompose, drop combining marks and lower-case: ``"Produção"`` → ``"producao"``."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def clean(text: str) -> str:
    """Full normalisation pipeline used for matching.

    Steps applied in order:
    1. Accent folding + lower-case
    2. Anything other than ``a-z``, ``0-9`` or whitespace becomes a space
    3. Whitespace normalisation
    """
    if not text:
        return ""
    t = fold_accents(str(text))
    t = _NON_ALNUM_SPACE.sub(" ", t)
    return _MULTI.sub(" ", t).strip()


def tokenize(text: str) -> tuple[str, frozenset[str]]:
    """Return the flattened text and its set of whitespace-delimited tokens."""
    flat = clean(text)
    return flat, frozenset(flat.split())


def department_key(name: str) -> str:
    """Compact key for a department name: ``"T.I"`` → ``"ti"``."""
    return _NON_ALNUM.sub("", fold_accents(name or ""))


def combine_fields(title: str | None, description: str | None) -> str:
    """Join title + description with a space, handling None."""
    t = str(title) if title else ""
    d = str(description) if description else ""
    return f"{t} {d}".strip()
