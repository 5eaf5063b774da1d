"""Conversion between rating records and the pandas frames the engine uses."""

from typing import Iterable

import numpy as np
import pandas as pd

from bridging_scorer.exceptions import InvalidRatingError
from bridging_scorer.models import HELPFULNESS_VALUES, Rating
from bridging_scorer.scoring import constants as c


def ratings_to_frame(ratings: Iterable[Rating]) -> pd.DataFrame:
    """Convert rating records to a frame with noteId, raterDid, helpfulness."""
    rows = [
        {
            c.NOTE_ID_KEY: r.note_id,
            c.RATER_DID_KEY: r.rater_did,
            c.HELPFULNESS_KEY: r.helpfulness,
        }
        for r in ratings
    ]
    if not rows:
        return empty_ratings_frame()
    return pd.DataFrame(rows, columns=c.RATING_COLUMNS).astype({c.HELPFULNESS_KEY: np.float64})


def empty_ratings_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            c.NOTE_ID_KEY: pd.Series(dtype=object),
            c.RATER_DID_KEY: pd.Series(dtype=object),
            c.HELPFULNESS_KEY: pd.Series(dtype=np.float64),
        }
    )


def validate_ratings_frame(ratings: pd.DataFrame) -> pd.DataFrame:
    """
    Check a raw ratings frame and return a normalized copy.

    Identifiers are cast to str and helpfulness to float64. Extra columns are
    dropped. Raises InvalidRatingError on missing columns, missing
    identifiers, identifiers that only differ by type, or helpfulness values
    outside {0, 0.5, 1}.
    """
    missing = [col for col in c.RATING_COLUMNS if col not in ratings.columns]
    if missing:
        raise InvalidRatingError(f"Ratings are missing columns: {missing}")

    frame = ratings[c.RATING_COLUMNS].copy()
    if frame.empty:
        return empty_ratings_frame()

    id_cols = [c.NOTE_ID_KEY, c.RATER_DID_KEY]
    if frame[id_cols].isna().values.any():
        raise InvalidRatingError("Ratings contain missing noteId or raterDid values")
    for col in id_cols:
        distinct = frame[col].nunique()
        frame[col] = frame[col].astype(str)
        if frame[col].nunique() < distinct:
            raise InvalidRatingError(
                f"Distinct {col} values collide once cast to str (e.g. 1 and '1'); "
                f"pass identifiers as strings"
            )

    try:
        frame[c.HELPFULNESS_KEY] = pd.to_numeric(frame[c.HELPFULNESS_KEY]).astype(np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidRatingError(f"Non-numeric helpfulness value: {e}") from e

    invalid = ~frame[c.HELPFULNESS_KEY].isin(list(HELPFULNESS_VALUES))
    if invalid.any():
        bad = sorted(frame.loc[invalid, c.HELPFULNESS_KEY].unique().tolist(), key=str)
        raise InvalidRatingError(
            f"{int(invalid.sum())} rating(s) have helpfulness outside "
            f"{sorted(HELPFULNESS_VALUES)}: {bad[:5]}"
        )
    return frame.reset_index(drop=True)
