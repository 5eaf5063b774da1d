"""
Bridging matrix factorization scoring engine.
"""

from bridging_scorer.scoring.parameters import ScoringParameters
from bridging_scorer.scoring.scorer import BridgingScorer, score_notes, score_ratings_frame
from bridging_scorer.scoring.status import derive_status

__all__ = [
    "BridgingScorer",
    "ScoringParameters",
    "derive_status",
    "score_notes",
    "score_ratings_frame",
]
