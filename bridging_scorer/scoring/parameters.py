"""Hyperparameters and thresholds for a scoring run."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from bridging_scorer.scoring import constants as c


class ScoringParameters(BaseModel):
    """
    Hyperparameters and thresholds used by a single scoring run.

    Defaults reproduce the calibrated reference behavior; change them only
    for experiments.
    """

    # Eligibility
    min_ratings_per_note: int = Field(default=c.MIN_RATINGS_PER_NOTE, ge=1)
    min_ratings_per_rater: int = Field(default=c.MIN_RATINGS_PER_RATER, ge=1)

    # Matrix factorization
    epochs: int = Field(default=c.EPOCHS, ge=1)
    learning_rate: float = Field(default=c.LEARNING_RATE, gt=0)
    reg_intercept: float = Field(default=c.REG_INTERCEPT, ge=0)
    reg_factor: float = Field(default=c.REG_FACTOR, ge=0)
    global_intercept_init: float = c.GLOBAL_INTERCEPT_INIT
    factor_init_scale: float = Field(default=c.FACTOR_INIT_SCALE, ge=0)
    beta1: float = Field(default=c.BETA1, ge=0, lt=1)
    beta2: float = Field(default=c.BETA2, ge=0, lt=1)
    epsilon: float = Field(default=c.EPSILON, gt=0)

    # Stop early once the gradient norm drops below this (None = run all epochs)
    convergence_tolerance: Optional[float] = Field(default=None, gt=0)
    flip_factor_identification: bool = False
    nonfinite_policy: Literal["zero", "raise"] = c.NONFINITE_ZERO

    # Note status thresholds
    crh_intercept: float = c.CRH_INTERCEPT
    crh_max_factor: float = c.CRH_MAX_FACTOR
    crnh_base: float = c.CRNH_BASE
    crnh_factor_weight: float = c.CRNH_FACTOR_WEIGHT

    class Config:
        frozen = True
