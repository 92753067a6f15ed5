"""
Domain weight normalisation.

Turns a user's ranked life priorities into blending weights for the Balance
Score. Weights are importance_score / sum(importance_score); when the total
importance is zero every domain gets 1/N instead.
"""

from dataclasses import dataclass
from typing import List, Sequence

from schemas import PriorityRow


@dataclass
class DomainWeight:
    domain: str
    weight: float          # 0-1, never clamped
    importance_score: int
    rank: int


def calculate_domain_weights(priorities: Sequence[PriorityRow]) -> List[DomainWeight]:
    """Normalise importance scores into per-domain weights, preserving input order."""
    if not priorities:
        return []

    total_importance = sum(p.importance_score for p in priorities)
    uniform = 1 / len(priorities)

    return [
        DomainWeight(
            domain=p.domain,
            weight=p.importance_score / total_importance if total_importance > 0 else uniform,
            importance_score=p.importance_score,
            rank=p.rank,
        )
        for p in priorities
    ]
