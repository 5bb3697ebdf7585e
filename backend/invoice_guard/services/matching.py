"""
Matching of invoice line item descriptions to contract billable items.

Descriptions come out of the extraction model with abbreviations and
reordering, so matching is loose. The policy is pluggable:
the orchestrator only depends on the ``MatchStrategy`` protocol.
"""

import os
import re
from typing import Optional, Protocol, Sequence

from ..models.document_models import BillableItem

_WORD_RE = re.compile(r"[a-z0-9]+")


class MatchStrategy(Protocol):
    def match(self, description: str, billable_items: Sequence[BillableItem]) -> Optional[BillableItem]:
        ...


class SubstringMatchStrategy:
    """First contract item whose description contains, or is contained in,
    the invoice description (case-insensitive)."""

    def match(self, description: str, billable_items: Sequence[BillableItem]) -> Optional[BillableItem]:
        needle = description.lower()
        for item in billable_items:
            candidate = item.description.lower()
            if needle in candidate or candidate in needle:
                return item
        return None


def _words(text: str) -> set:
    return set(_WORD_RE.findall(text.lower()))


def token_overlap(a: str, b: str) -> float:
    """Jaccard ratio of the alphanumeric words of two descriptions."""
    wa, wb = _words(a), _words(b)
    if not wa or not wb:
        return 0.0
    return len(wa & wb) / len(wa | wb)


class TokenOverlapMatchStrategy:
    """Scores every contract item by word overlap and picks the best.

    Ties go to the longest common prefix with the invoice description, then
    to contract order. Candidates below ``min_score`` are ignored.
    """

    def __init__(self, min_score: float = 0.5):
        self.min_score = min_score

    def match(self, description: str, billable_items: Sequence[BillableItem]) -> Optional[BillableItem]:
        needle = description.lower()
        best = None
        best_key = None
        for item in billable_items:
            score = token_overlap(description, item.description)
            if score < self.min_score:
                continue
            prefix = len(os.path.commonprefix([needle, item.description.lower()]))
            key = (score, prefix)
            # strict comparison keeps the earliest item on a full tie
            if best_key is None or key > best_key:
                best, best_key = item, key
        return best


DEFAULT_STRATEGY = SubstringMatchStrategy()


def find_matching_item(
    description: str,
    billable_items: Sequence[BillableItem],
    strategy: Optional[MatchStrategy] = None,
) -> Optional[BillableItem]:
    return (strategy or DEFAULT_STRATEGY).match(description, billable_items)
