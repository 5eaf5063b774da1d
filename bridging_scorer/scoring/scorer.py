"""
Batch bridging scorer.

Runs the full pipeline on a complete rating set:
eligibility filter -> dense index -> matrix factorization -> note status.
Every note that appears in the input gets exactly one NoteScore; notes that
were not fitted get a zero intercept and factor and NMR.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from bridging_scorer.exceptions import NonFiniteScoreError
from bridging_scorer.models import NoteScore, NoteStatus, Rating
from bridging_scorer.scoring import constants as c
from bridging_scorer.scoring.eligibility import filter_eligible
from bridging_scorer.scoring.frames import ratings_to_frame, validate_ratings_frame
from bridging_scorer.scoring.indexing import build_index
from bridging_scorer.scoring.matrix_factorization import BridgingMatrixFactorization, FitResult
from bridging_scorer.scoring.parameters import ScoringParameters
from bridging_scorer.scoring.status import derive_status


logger = logging.getLogger(__name__)


class BridgingScorer:
    """
    Scores notes from helpfulness ratings.

    The random source for factor initialization is injectable: pass a
    `numpy.random.Generator` or a seed. With neither, each run draws fresh
    entropy.
    """

    def __init__(
        self,
        params: Optional[ScoringParameters] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.params = params or ScoringParameters()
        self._seed = seed
        self._rng = rng
        self.last_fit: Optional[FitResult] = None
        self.last_ratings_used = 0

    def _generator(self) -> np.random.Generator:
        if self._rng is not None:
            return self._rng
        return np.random.default_rng(self._seed)

    def score(self, ratings: Iterable[Rating]) -> List[NoteScore]:
        """Score rating records."""
        return self.score_frame(ratings_to_frame(ratings))

    def score_frame(self, ratings: pd.DataFrame) -> List[NoteScore]:
        """Score a frame with noteId, raterDid and helpfulness columns."""
        frame = validate_ratings_frame(ratings)
        self.last_fit = None
        self.last_ratings_used = 0
        if frame.empty:
            logger.info("No ratings to score")
            return []

        duplicates = int(frame.duplicated([c.NOTE_ID_KEY, c.RATER_DID_KEY]).sum())
        if duplicates:
            logger.warning(
                f"{duplicates} duplicate (note, rater) ratings; each counts as a separate observation"
            )

        eligibility = filter_eligible(
            frame,
            min_ratings_per_note=self.params.min_ratings_per_note,
            min_ratings_per_rater=self.params.min_ratings_per_rater,
        )
        note_counts = eligibility.note_counts

        if eligibility.empty:
            logger.info(
                f"No ratings survive the eligibility filter; "
                f"{len(note_counts)} notes get {NoteStatus.NEEDS_MORE_RATINGS.value}"
            )
            return [_unscored(note_id, count) for note_id, count in note_counts.items()]

        index = build_index(eligibility.ratings)
        fit = BridgingMatrixFactorization(self.params).fit(index, self._generator())
        self.last_fit = fit
        self.last_ratings_used = index.num_ratings

        intercepts, factors = self._checked_note_params(index.note_ids, fit)
        position = index.note_position()

        scores = []
        for note_id, count in note_counts.items():
            if note_id not in position.index:
                scores.append(_unscored(note_id, count))
                continue
            i = position[note_id]
            intercept = float(intercepts[i])
            factor = float(factors[i])
            scores.append(
                NoteScore(
                    note_id=note_id,
                    intercept=intercept,
                    factor=factor,
                    rating_count=int(count),
                    status=self._status(intercept, factor),
                )
            )
        return scores

    def _status(self, intercept: float, factor: float) -> NoteStatus:
        p = self.params
        return derive_status(
            intercept,
            factor,
            crh_intercept=p.crh_intercept,
            crh_max_factor=p.crh_max_factor,
            crnh_base=p.crnh_base,
            crnh_factor_weight=p.crnh_factor_weight,
        )

    def _checked_note_params(self, note_ids: np.ndarray, fit: FitResult):
        """Apply the non-finite policy to the fitted note parameters."""
        bad = ~(np.isfinite(fit.note_intercepts) & np.isfinite(fit.note_factors))
        if not bad.any():
            return fit.note_intercepts, fit.note_factors

        if self.params.nonfinite_policy == c.NONFINITE_RAISE:
            raise NonFiniteScoreError(note_ids[bad])

        logger.warning(
            f"{int(bad.sum())} note(s) have non-finite fitted parameters; "
            f"reporting them as zero"
        )
        intercepts = np.where(bad, 0.0, fit.note_intercepts)
        factors = np.where(bad, 0.0, fit.note_factors)
        return intercepts, factors


def _unscored(note_id: str, count: int) -> NoteScore:
    return NoteScore(
        note_id=note_id,
        intercept=0.0,
        factor=0.0,
        rating_count=int(count),
        status=NoteStatus.NEEDS_MORE_RATINGS,
    )


def score_notes(
    ratings: Iterable[Rating],
    params: Optional[ScoringParameters] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[NoteScore]:
    """Score rating records with a one-off BridgingScorer."""
    return BridgingScorer(params, rng=rng).score(ratings)


def score_ratings_frame(
    ratings: pd.DataFrame,
    params: Optional[ScoringParameters] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[NoteScore]:
    """Score a ratings frame with a one-off BridgingScorer."""
    return BridgingScorer(params, rng=rng).score_frame(ratings)
