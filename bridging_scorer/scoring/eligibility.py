"""
Eligibility filter.

A rating takes part in fitting only if its note and its rater both have
enough ratings in the full, unfiltered set. Counts are computed once; the
filter is not iterated.
"""

import dataclasses
import logging

import pandas as pd

from bridging_scorer.scoring import constants as c


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class EligibilityResult:
    ratings: pd.DataFrame
    note_counts: pd.Series
    rater_counts: pd.Series
    eligible_notes: pd.Index
    eligible_raters: pd.Index

    @property
    def empty(self) -> bool:
        return self.ratings.empty


def count_ratings(ratings: pd.DataFrame):
    """
    Count ratings per note and per rater, in order of first appearance.

    Duplicate (note, rater) pairs are counted as separate ratings.

    Returns:
        Tuple[pd.Series, pd.Series]: note counts indexed by noteId, rater
        counts indexed by raterDid
    """
    note_counts = ratings.groupby(c.NOTE_ID_KEY, sort=False).size().rename(c.RATING_COUNT_KEY)
    rater_counts = ratings.groupby(c.RATER_DID_KEY, sort=False).size().rename(c.RATING_COUNT_KEY)
    return note_counts, rater_counts


def filter_eligible(
    ratings: pd.DataFrame,
    min_ratings_per_note: int = c.MIN_RATINGS_PER_NOTE,
    min_ratings_per_rater: int = c.MIN_RATINGS_PER_RATER,
) -> EligibilityResult:
    """Keep ratings whose note and rater each clear their minimum count.

    Args:
        ratings (pd.DataFrame): validated ratings
        min_ratings_per_note (int): notes need at least this many ratings
        min_ratings_per_rater (int): raters need at least this many ratings

    Returns:
        EligibilityResult: the filtered ratings plus the raw counts
    """
    note_counts, rater_counts = count_ratings(ratings)
    eligible_notes = note_counts.index[note_counts >= min_ratings_per_note]
    eligible_raters = rater_counts.index[rater_counts >= min_ratings_per_rater]

    keep = ratings[c.NOTE_ID_KEY].isin(eligible_notes) & ratings[c.RATER_DID_KEY].isin(eligible_raters)
    filtered = ratings.loc[keep].reset_index(drop=True)

    logger.info(
        f"Eligibility: {len(filtered)}/{len(ratings)} ratings kept; "
        f"{len(eligible_notes)}/{len(note_counts)} notes and "
        f"{len(eligible_raters)}/{len(rater_counts)} raters above threshold"
    )
    return EligibilityResult(
        ratings=filtered,
        note_counts=note_counts,
        rater_counts=rater_counts,
        eligible_notes=eligible_notes,
        eligible_raters=eligible_raters,
    )
