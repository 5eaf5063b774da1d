"""
Scoring service wrapper around the bridging scorer.

Adds what a scheduled caller needs on top of the pure engine: settings,
timing, a record of the last run, status transitions against the caller's
stored statuses, the resulting label plan, and dispute resolutions.
"""

import dataclasses
import logging
import time
from collections import Counter
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from bridging_scorer.config import Settings, get_settings
from bridging_scorer.models import NoteScore, NoteStatus, PendingDispute, Rating
from bridging_scorer.scoring.scorer import BridgingScorer
from bridging_scorer.transitions import (
    find_status_transitions, plan_label_actions, resolve_disputes
)


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ScoringRun:
    """Log of one scoring run."""

    started_at: datetime
    algorithm_version: str
    config_snapshot: Dict
    completed_at: Optional[datetime] = None
    notes_scored: int = 0
    notes_fitted: int = 0
    ratings_received: int = 0
    ratings_used: int = 0
    status_changes: int = 0
    disputes_resolved: int = 0
    duration_seconds: Optional[float] = None
    success: bool = True
    error_message: Optional[str] = None


class ScoringService:
    """
    Service for running the bridging scorer.

    - Scores the complete rating set handed in by the caller
    - Compares the new statuses with the caller's stored statuses
    - Plans label operations for notes whose status changed
    - Resolves open disputes whose dispute note reached CRH or CRNH
    """

    ALGORITHM_VERSION = "1.0.0"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.last_run: Optional[ScoringRun] = None

    def run_scoring(
        self,
        ratings: Union[Iterable[Rating], pd.DataFrame],
        previous_statuses: Optional[Mapping[str, NoteStatus]] = None,
        seed: Optional[int] = None,
        pending_disputes: Optional[Iterable[PendingDispute]] = None,
    ) -> Dict:
        """
        Run the scoring algorithm on a complete set of ratings.

        Args:
            ratings: Rating records or a frame with noteId, raterDid, helpfulness
            previous_statuses: Stored status per note from the previous run
            seed: Seed for factor initialization (None = settings.random_seed)
            pending_disputes: Open disputes to resolve against the new statuses

        Returns:
            Dictionary with scores, transitions, label operations, dispute
            resolutions and run stats.
            last_run is replaced only when the run has finished.
        """
        start_time = time.time()
        params = self.settings.scoring_parameters()

        scoring_run = ScoringRun(
            started_at=datetime.now(UTC),
            algorithm_version=self.ALGORITHM_VERSION,
            config_snapshot={
                "min_ratings_per_note": params.min_ratings_per_note,
                "min_ratings_per_rater": params.min_ratings_per_rater,
                "epochs": params.epochs,
                "helpful_intercept_threshold": params.crh_intercept,
                "not_helpful_intercept_threshold": params.crnh_base,
            },
        )

        try:
            scorer = BridgingScorer(
                params, seed=seed if seed is not None else self.settings.random_seed
            )
            if isinstance(ratings, pd.DataFrame):
                scoring_run.ratings_received = len(ratings)
                scores = scorer.score_frame(ratings)
            else:
                ratings = list(ratings)
                scoring_run.ratings_received = len(ratings)
                scores = scorer.score(ratings)

            transitions = find_status_transitions(scores, previous_statuses)
            label_operations = plan_label_actions(
                transitions, max_ops=self.settings.max_label_ops_per_run
            )
            if len(transitions) > len(label_operations):
                logger.info(
                    f"{len(transitions) - len(label_operations)} label operations "
                    f"deferred to the next run"
                )

            scoring_run.notes_fitted = scorer.last_fit.note_intercepts.size if scorer.last_fit else 0
            scoring_run.ratings_used = scorer.last_ratings_used
            scoring_run.status_changes = len(transitions)
            dispute_resolutions = resolve_disputes(scores, pending_disputes or [])
            scoring_run.disputes_resolved = len(dispute_resolutions)

            result = self._finalize_scoring_run(scoring_run, scores, start_time, [])
            result["transitions"] = transitions
            result["label_operations"] = label_operations
            result["dispute_resolutions"] = dispute_resolutions
            return result

        except Exception as e:
            logger.exception("Error during scoring")
            scoring_run.success = False
            scoring_run.error_message = str(e)
            scoring_run.completed_at = datetime.now(UTC)
            scoring_run.duration_seconds = time.time() - start_time
            self.last_run = scoring_run
            raise

    def _finalize_scoring_run(
        self,
        scoring_run: ScoringRun,
        scores: List[NoteScore],
        start_time: float,
        errors: List[str]
    ) -> Dict:
        """Finalize and log the scoring run."""
        duration = time.time() - start_time
        now = datetime.now(UTC)

        scoring_run.completed_at = now
        scoring_run.notes_scored = len(scores)
        scoring_run.duration_seconds = duration
        scoring_run.success = len(errors) == 0
        if errors:
            scoring_run.error_message = "; ".join(errors)

        status_counts = Counter(s.status.value for s in scores)
        self.last_run = scoring_run

        logger.info(
            f"Scoring complete: {scoring_run.notes_scored} notes "
            f"({scoring_run.notes_fitted} fitted, "
            f"{status_counts.get(NoteStatus.CURRENTLY_RATED_HELPFUL.value, 0)} CRH, "
            f"{status_counts.get(NoteStatus.CURRENTLY_RATED_NOT_HELPFUL.value, 0)} CRNH), "
            f"{scoring_run.ratings_used}/{scoring_run.ratings_received} ratings used, "
            f"{scoring_run.status_changes} status changes, "
            f"{scoring_run.disputes_resolved} disputes resolved in {duration:.2f}s"
        )

        return {
            "success": scoring_run.success,
            "scores": scores,
            "notes_scored": scoring_run.notes_scored,
            "notes_fitted": scoring_run.notes_fitted,
            "ratings_received": scoring_run.ratings_received,
            "ratings_used": scoring_run.ratings_used,
            "status_counts": dict(status_counts),
            "duration_seconds": duration,
            "errors": errors,
            "scored_at": now.isoformat()
        }
