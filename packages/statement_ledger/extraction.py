"""Extract candidate party-name phrases from a bank narration.

No single rule generalizes across banks, so candidates come from four layers,
coarsest last:

1. colon-delimited segment (``CHQ DEP:ACME TRADERS:...``);
2. transfer-code positional patterns (``NEFT CR-<id>-ACME TRADERS-HDFC...``);
3. sliding windows over the tokens that survive a jargon/code filter;
4. the whole narration with reference numbers and long digit runs removed.

Suggestion uses only the first layer that yields anything. Training uses every
layer, but only multi-word phrases and 2-4 token windows, so that a single
shared word (``raja``, ``motors``) never becomes a key of its own.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from .matching import normalize_key

MIN_NARRATION_LENGTH = 5
MAX_WINDOW = 6
TRAINING_WINDOW = (2, 4)
MIN_TRAINING_LENGTH = 6

_COLON_SEGMENT = re.compile(r":\s*([A-Z][A-Z\s\w]+?)\s*:", re.IGNORECASE)

_TRANSFER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?:NEFT|IMPS|RTGS|UPI|FT)\s*(?:CR|DR)?[\s\-]+[A-Z0-9]+[\s\-]+"
        r"([A-Z][A-Z\s\w]+?)[\s\-]+(?:[A-Z]{4,}|[A-Z]{2}\d{10,}|\d{10,})",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:NEFT|IMPS|RTGS|UPI|FT|CHQ)\s*(?:CR|DR)?[\s\-]+\d+[\s\-]+"
        r"([A-Z][A-Z\s\w]+?)(?:\s*-\s*\d+|\s*$)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:UPI|NEFT|IMPS)[\s\-]+[\d\-@]+[\s\-]+([A-Z][A-Z\s\w]+?)[\s\-]+(?:[A-Z0-9@]+|\d+)",
        re.IGNORECASE,
    ),
)

_TOKEN_SPLIT = re.compile(r"[\s\-:]+")
_CODE_TOKENS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\d+$"),
    re.compile(r"^[A-Z]{2,4}\d+$", re.IGNORECASE),
    re.compile(r"^[A-Z]{2,4}N\d+$", re.IGNORECASE),
    re.compile(r"\d{10,}"),
    # Mixed letter/digit or handle-style codes (IFSC, UPI ids).
    re.compile(r"^(?=.*[\d@])[A-Z0-9@._]+$", re.IGNORECASE),
)
JARGON_TOKENS: frozenset[str] = frozenset(
    {
        "neft",
        "imps",
        "rtgs",
        "upi",
        "ft",
        "chq",
        "cr",
        "dr",
        "dep",
        "cts",
        "clg",
        "wbo",
        "hyd",
        "tpt",
        "srr",
        "hyderabad",
    }
)

_RESIDUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"REF\s*NO[:\-]?\s*[A-Z0-9]+", re.IGNORECASE),
    re.compile(r"TXN\s*ID[:\-]?\s*[A-Z0-9]+", re.IGNORECASE),
    re.compile(r"UTR[:\-]?\s*[A-Z0-9]+", re.IGNORECASE),
    re.compile(r"CHQ\s*NO[:\-]?\s*[A-Z0-9]+", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2,4}\d{6,}\b", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2,4}N\d{10,}\b", re.IGNORECASE),
    re.compile(r"\b\d{10,}\b"),
    re.compile(r"X{6,}", re.IGNORECASE),
    re.compile(r"@[A-Z0-9]+", re.IGNORECASE),
)


def _colon_layer(text: str) -> Iterator[str]:
    for m in _COLON_SEGMENT.finditer(text):
        seg = normalize_key(m.group(1))
        if 3 <= len(seg) <= 100:
            yield seg


def _transfer_layer(text: str) -> Iterator[str]:
    for pattern in _TRANSFER_PATTERNS:
        m = pattern.search(text)
        if m:
            seg = normalize_key(m.group(1))
            if 3 < len(seg) < 100:
                yield seg


def _is_noise_token(token: str) -> bool:
    if len(token) <= 2 or token.lower() in JARGON_TOKENS:
        return True
    return any(p.search(token) for p in _CODE_TOKENS)


def surviving_tokens(text: str) -> list[str]:
    """Tokens left after dropping numbers, codes and transaction jargon."""

    return [t for t in _TOKEN_SPLIT.split(text) if t and not _is_noise_token(t)]


def _window_layer(
    text: str, min_size: int = 1, max_size: int = MAX_WINDOW
) -> Iterator[str]:
    tokens = [t.lower() for t in surviving_tokens(text)]
    for i in range(len(tokens)):
        for size in range(min_size, max_size + 1):
            if i + size > len(tokens):
                break
            phrase = " ".join(tokens[i : i + size])
            if 3 < len(phrase) < 80:
                yield phrase


def clean_residue(text: str) -> str:
    """Strip reference numbers, UTRs, cheque numbers and digit runs."""

    for pattern in _RESIDUE_PATTERNS:
        text = pattern.sub(" ", text)
    return normalize_key(text)


def _residue_layer(text: str) -> Iterator[str]:
    residue = clean_residue(text)
    if len(residue) > 5:
        yield residue


_LAYERS = (_colon_layer, _transfer_layer, _window_layer, _residue_layer)


def _usable(narration: str | None) -> str | None:
    if not narration:
        return None
    text = narration.strip()
    return text if len(text) >= MIN_NARRATION_LENGTH else None


def iter_candidates(narration: str | None) -> Iterator[list[str]]:
    """Lazily yield each layer's de-duplicated candidates, in layer order."""

    text = _usable(narration)
    if text is None:
        return
    for layer in _LAYERS:
        yield list(dict.fromkeys(layer(text)))


def suggest_candidates(narration: str | None) -> list[str]:
    """Candidates from the first layer that produces any."""

    for found in iter_candidates(narration):
        if found:
            return found
    return []


def extract_all(narration: str | None) -> list[str]:
    """Every candidate from every layer, de-duplicated, first occurrence kept."""

    seen: dict[str, None] = {}
    for found in iter_candidates(narration):
        for c in found:
            seen.setdefault(c, None)
    return list(seen)


def _is_training_phrase(candidate: str) -> bool:
    return len(candidate) >= MIN_TRAINING_LENGTH and len(candidate.split()) >= 2


def extract_training(narration: str | None) -> list[str]:
    """Candidates worth learning as keys: multi-word phrases from every layer.

    Windows span ``TRAINING_WINDOW`` tokens; one-word candidates from any
    layer are dropped.
    """

    text = _usable(narration)
    if text is None:
        return []
    lo, hi = TRAINING_WINDOW
    layers = (
        _colon_layer(text),
        _transfer_layer(text),
        _window_layer(text, lo, hi),
        _residue_layer(text),
    )
    seen: dict[str, None] = {}
    for layer in layers:
        for c in layer:
            if _is_training_phrase(c):
                seen.setdefault(c, None)
    return list(seen)


__all__ = [
    "JARGON_TOKENS",
    "MAX_WINDOW",
    "MIN_NARRATION_LENGTH",
    "MIN_TRAINING_LENGTH",
    "TRAINING_WINDOW",
    "clean_residue",
    "extract_all",
    "extract_training",
    "iter_candidates",
    "suggest_candidates",
    "surviving_tokens",
]
