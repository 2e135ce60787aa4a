from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass

from rapidfuzz import fuzz

from ..config.loader import FuzzyMatchConfig
from ..models.master_data import MasterDataIndex, MasterEntry

"""Entity resolver: free-text reference -> master data id.

Resolution order (first stage that decides wins):
  1. exact, case-insensitive match on canonical code
  2. exact, case-insensitive match on display name or alias
  3. fuzzy match on normalized token sets

Normalization for stage 3: NFKD decomposition with combining marks dropped
("Città" -> "citta"), punctuation replaced by spaces, case folded, whitespace
collapsed. Two tokens match when equal or when ``rapidfuzz.fuzz.ratio``
reaches ``token_similarity``; confidence is the Dice coefficient over matched
tokens, ``2*m / (|A| + |B|)``, best of display name and aliases.

A fuzzy match is accepted only when its confidence reaches ``threshold`` AND
exactly one entry does so. Several entries clearing the threshold (or several
exact hits) give an explicit ``ambiguous`` outcome, never a first-match pick.

The resolver is a pure function of (index, settings): no store access.
"""

__all__ = [
    "NOT_FOUND",
    "AMBIGUOUS",
    "Resolution",
    "EntityResolver",
    "normalize_text",
    "tokenize",
    "token_set_confidence",
]

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
AMBIGUOUS = "ambiguous"

_PUNCTUATION = re.compile(r"[^\w\s]|_")


@dataclass(frozen=True)
class Resolution:
    attempted_text: str
    entity_id: str | None = None
    stage: str | None = None  # code | name | fuzzy
    confidence: float = 0.0
    reason: str | None = None  # NOT_FOUND | AMBIGUOUS when unresolved
    candidates: tuple[str, ...] = ()  # ids involved in an ambiguous outcome

    @property
    def resolved(self) -> bool:
        return self.entity_id is not None


def normalize_text(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(_PUNCTUATION.sub(" ", stripped).casefold().split())


def tokenize(text: str) -> frozenset[str]:
    return frozenset(normalize_text(text).split())


def token_set_confidence(left: frozenset[str], right: frozenset[str], token_similarity: float) -> float:
    """Dice coefficient of matched tokens; greedy, deterministic (sorted) pairing."""
    if not left or not right:
        return 0.0
    unmatched = sorted(right)
    matched = 0
    for token in sorted(left):
        if token in unmatched:
            unmatched.remove(token)
            matched += 1
            continue
        best: str | None = None
        best_score = 0.0
        for other in unmatched:
            score = fuzz.ratio(token, other)
            if score >= token_similarity and score > best_score:
                best, best_score = other, score
        if best is not None:
            unmatched.remove(best)
            matched += 1
    return 2 * matched / (len(left) + len(right))


class EntityResolver:
    """Resolves employee / site / material references against one snapshot."""

    def __init__(self, index: MasterDataIndex, settings: FuzzyMatchConfig | None = None) -> None:
        self.index = index
        self.settings = settings or FuzzyMatchConfig()

    def resolve(self, kind: str, text: str) -> Resolution:
        attempted = text.strip()
        entries = self.index.collection(kind)
        if not attempted:
            return Resolution(attempted_text=text, reason=NOT_FOUND)

        folded = attempted.casefold()
        by_code = [e for e in entries if e.canonical_code and e.canonical_code.strip().casefold() == folded]
        outcome = self._decide(attempted, by_code, "code", 1.0)
        if outcome is not None:
            return outcome

        by_name = [e for e in entries if folded in {n.strip().casefold() for n in self._names(e)}]
        outcome = self._decide(attempted, by_name, "name", 1.0)
        if outcome is not None:
            return outcome

        return self._fuzzy(attempted, entries)

    def _fuzzy(self, attempted: str, entries: Sequence[MasterEntry]) -> Resolution:
        tokens = tokenize(attempted)
        scored: list[tuple[MasterEntry, float]] = []
        for entry in entries:
            confidence = max(
                token_set_confidence(tokens, tokenize(name), self.settings.token_similarity)
                for name in self._names(entry)
            )
            if confidence >= self.settings.threshold:
                scored.append((entry, confidence))
        if len(scored) == 1:
            entry, confidence = scored[0]
            logger.debug("fuzzy match %r -> %s (confidence=%.2f)", attempted, entry.id, confidence)
            return Resolution(attempted_text=attempted, entity_id=entry.id, stage="fuzzy", confidence=confidence)
        if scored:
            logger.debug("ambiguous fuzzy match %r -> %s", attempted, [e.id for e, _ in scored])
            return Resolution(
                attempted_text=attempted,
                reason=AMBIGUOUS,
                stage="fuzzy",
                confidence=max(c for _, c in scored),
                candidates=tuple(e.id for e, _ in scored),
            )
        return Resolution(attempted_text=attempted, reason=NOT_FOUND)

    @staticmethod
    def _names(entry: MasterEntry) -> tuple[str, ...]:
        return (entry.display_name, *entry.aliases)

    @staticmethod
    def _decide(attempted: str, hits: list[MasterEntry], stage: str, confidence: float) -> Resolution | None:
        if len(hits) == 1:
            return Resolution(attempted_text=attempted, entity_id=hits[0].id, stage=stage, confidence=confidence)
        if len(hits) > 1:
            return Resolution(
                attempted_text=attempted,
                reason=AMBIGUOUS,
                stage=stage,
                confidence=confidence,
                candidates=tuple(e.id for e in hits),
            )
        return None
