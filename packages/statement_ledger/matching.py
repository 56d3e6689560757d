"""Text normalization and word-overlap matching for name resolution.

Two matchers live here:

- :func:`fuzzy_match` compares a lookup text against a stored mapping key.
  It is deliberately strict: a wrong suggestion silently mislabels a
  transaction, while a missed one only asks the user once more.
- :func:`score_party_match` / :func:`find_matching_parties` look for known
  party names inside a narration, word by word.

The thresholds in :class:`MatchThresholds` are empirically tuned defaults,
not derived constants; callers may override them.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

_WS = re.compile(r"\s+")

# Generic business/location/jargon words that carry no identifying signal.
GENERIC_WORDS: frozenset[str] = frozenset(
    {
        "private",
        "limited",
        "pvt",
        "ltd",
        "llp",
        "llc",
        "inc",
        "corp",
        "company",
        "traders",
        "enterprises",
        "and",
        "the",
        "with",
        "from",
        "india",
        "indian",
        "bank",
        "branch",
        "hyderabad",
        "secunderabad",
        "bangalore",
        "bengaluru",
        "mumbai",
        "chennai",
        "delhi",
        "neft",
        "imps",
        "rtgs",
        "transfer",
        "payment",
        "credit",
        "debit",
    }
)

# Filler dropped when scoring a party name against a narration.
_PARTY_FILLER: frozenset[str] = frozenset(
    {
        "pvt",
        "ltd",
        "limited",
        "private",
        "inc",
        "incorporated",
        "llp",
        "llc",
        "and",
        "the",
        "of",
        "for",
        "to",
        "in",
        "on",
        "at",
        "by",
        "with",
        "from",
    }
)


@dataclass(frozen=True, slots=True)
class MatchThresholds:
    """Fuzzy-match tuning.

    Attributes
    ----------
    min_overlap_words:
        Shared significant words required by either rule.
    containment_overlap:
        Overlap ratio required when one text contains the other.
    overlap_ratio:
        Overlap ratio (against the shorter word list) required without
        containment.
    min_length_ratio:
        Shorter/longer character-length ratio required without containment.
    min_word_length:
        Words shorter than this are not significant.
    """

    min_overlap_words: int = 2
    containment_overlap: float = 0.5
    overlap_ratio: float = 0.75
    min_length_ratio: float = 0.5
    min_word_length: int = 4


def normalize_key(text: str | None) -> str:
    """Trim, lower-case and collapse whitespace."""

    if not text:
        return ""
    return _WS.sub(" ", text.strip().lower())


def significant_words(text: str, *, min_length: int = 4) -> list[str]:
    """Return distinct significant words of an already-normalized text, in order."""

    seen: dict[str, None] = {}
    for w in text.split(" "):
        if len(w) >= min_length and w not in GENERIC_WORDS:
            seen.setdefault(w, None)
    return list(seen)


def fuzzy_match(
    text: str, key: str, thresholds: MatchThresholds | None = None
) -> bool:
    """Return True when normalized ``text`` is close enough to stored ``key``.

    Accept when either:

    - one string contains the other, at least ``containment_overlap`` of the
      larger significant-word list overlaps, and ``min_overlap_words`` words
      are shared; or
    - both sides have ``min_overlap_words`` significant words, the shared
      words cover ``overlap_ratio`` of the smaller list, and the character
      lengths are within ``min_length_ratio``.
    """

    th = thresholds or MatchThresholds()
    if not text or not key:
        return False

    text_words = significant_words(text, min_length=th.min_word_length)
    key_words = significant_words(key, min_length=th.min_word_length)
    if not text_words or not key_words:
        return False
    key_set = set(key_words)
    shared = sum(1 for w in text_words if w in key_set)
    if shared < th.min_overlap_words:
        return False

    if text in key or key in text:
        ratio = shared / max(len(text_words), len(key_words))
        if ratio >= th.containment_overlap:
            return True

    if len(text_words) >= th.min_overlap_words and len(key_words) >= th.min_overlap_words:
        needed = math.ceil(min(len(text_words), len(key_words)) * th.overlap_ratio)
        if shared >= needed:
            length_ratio = min(len(text), len(key)) / max(len(text), len(key))
            if length_ratio >= th.min_length_ratio:
                return True
    return False


def score_party_match(narration: str, party_name: str) -> float:
    """Score how well ``party_name`` appears in ``narration`` (0, or 0.5..1.0).

    The score is the fraction of the party's significant words found in the
    narration; anything under one half scores 0.
    """

    if not narration or not party_name:
        return 0.0
    narration_lower = narration.lower()
    words = [
        w for w in party_name.lower().split() if len(w) > 2 and w not in _PARTY_FILLER
    ]
    if not words:
        return 0.0
    ratio = sum(1 for w in words if w in narration_lower) / len(words)
    return ratio if ratio >= 0.5 else 0.0


def find_matching_parties(
    narration: str, parties: Iterable[str], max_matches: int = 3
) -> list[str]:
    """Return up to ``max_matches`` known parties found in ``narration``, best first."""

    if not narration:
        return []
    scored: list[tuple[float, int, str]] = []
    for i, party in enumerate(parties):
        if not party or not party.strip():
            continue
        score = score_party_match(narration, party)
        if score > 0:
            scored.append((score, i, party.strip()))
    # Stable: ties keep the caller's order.
    scored.sort(key=lambda t: (-t[0], t[1]))
    return [p for _, _, p in scored[:max_matches]]


def best_fuzzy_key(
    text: str, keys: Sequence[str], thresholds: MatchThresholds | None = None
) -> str | None:
    """Return the first stored key that fuzzily matches ``text``."""

    for key in keys:
        if fuzzy_match(text, key, thresholds):
            return key
    return None


__all__ = [
    "GENERIC_WORDS",
    "MatchThresholds",
    "best_fuzzy_key",
    "find_matching_parties",
    "fuzzy_match",
    "normalize_key",
    "score_party_match",
    "significant_words",
]
