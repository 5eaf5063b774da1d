"""
Routes package for the bridging scorer API.
"""

from bridging_scorer.routes.scoring import router as scoring_router

__all__ = ["scoring_router"]
