"""Note status from a fitted (intercept, factor) pair."""

from bridging_scorer.models import NoteStatus
from bridging_scorer.scoring import constants as c


def derive_status(
    intercept: float,
    factor: float,
    crh_intercept: float = c.CRH_INTERCEPT,
    crh_max_factor: float = c.CRH_MAX_FACTOR,
    crnh_base: float = c.CRNH_BASE,
    crnh_factor_weight: float = c.CRNH_FACTOR_WEIGHT,
) -> NoteStatus:
    """
    Classify a note.

    CRH needs a high intercept and a factor close to zero. CRNH uses a
    sliding threshold: the further the factor is from zero, the lower the
    intercept must be. Everything else, including the all-zero default for
    unfitted notes, is NMR.
    """
    magnitude = abs(factor)
    if intercept >= crh_intercept and magnitude < crh_max_factor:
        return NoteStatus.CURRENTLY_RATED_HELPFUL
    if intercept <= crnh_base - crnh_factor_weight * magnitude:
        return NoteStatus.CURRENTLY_RATED_NOT_HELPFUL
    return NoteStatus.NEEDS_MORE_RATINGS
