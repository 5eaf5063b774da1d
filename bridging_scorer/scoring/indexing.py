"""Dense integer indexes for the notes and raters that survive filtering."""

import dataclasses

import numpy as np
import pandas as pd

from bridging_scorer.scoring import constants as c


@dataclasses.dataclass
class RatingIndex:
    """Flat arrays backing one fit.

    note_ids[note_indexes[k]] and rater_ids[rater_indexes[k]] identify the k-th
    rating, whose value is values[k].
    """

    note_ids: np.ndarray
    rater_ids: np.ndarray
    note_indexes: np.ndarray
    rater_indexes: np.ndarray
    values: np.ndarray

    @property
    def num_notes(self) -> int:
        return len(self.note_ids)

    @property
    def num_raters(self) -> int:
        return len(self.rater_ids)

    @property
    def num_ratings(self) -> int:
        return len(self.values)

    def note_position(self) -> pd.Series:
        """Map from noteId to its dense position."""
        return pd.Series(np.arange(self.num_notes), index=self.note_ids, name=c.NOTE_INDEX_KEY)


def build_index(ratings: pd.DataFrame) -> RatingIndex:
    """Assign zero-based positions to notes and raters in order of first appearance."""
    note_indexes, note_ids = pd.factorize(ratings[c.NOTE_ID_KEY], sort=False)
    rater_indexes, rater_ids = pd.factorize(ratings[c.RATER_DID_KEY], sort=False)
    return RatingIndex(
        note_ids=np.asarray(note_ids),
        rater_ids=np.asarray(rater_ids),
        note_indexes=note_indexes.astype(np.int64),
        rater_indexes=rater_indexes.astype(np.int64),
        values=ratings[c.HELPFULNESS_KEY].to_numpy(dtype=np.float64),
    )
