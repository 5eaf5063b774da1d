"""
Configuration settings for the bridging scorer.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings

from bridging_scorer.scoring import constants as c
from bridging_scorer.scoring.parameters import ScoringParameters


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    app_name: str = "Bridging Scorer"
    app_version: str = "0.1.0"
    debug: bool = False

    # Eligibility thresholds
    min_ratings_per_note: int = c.MIN_RATINGS_PER_NOTE
    min_ratings_per_rater: int = c.MIN_RATINGS_PER_RATER

    # Matrix Factorization Parameters
    mf_epochs: int = c.EPOCHS
    mf_learning_rate: float = c.LEARNING_RATE
    mf_intercept_regularization: float = c.REG_INTERCEPT
    mf_factor_regularization: float = c.REG_FACTOR
    mf_convergence_tolerance: Optional[float] = None
    mf_flip_factor_identification: bool = False
    nonfinite_policy: Literal["zero", "raise"] = c.NONFINITE_ZERO
    random_seed: Optional[int] = None  # None = fresh entropy each run

    # Thresholds for note status
    helpful_intercept_threshold: float = c.CRH_INTERCEPT
    helpful_factor_threshold: float = c.CRH_MAX_FACTOR
    not_helpful_intercept_threshold: float = c.CRNH_BASE
    not_helpful_factor_weight: float = c.CRNH_FACTOR_WEIGHT

    # Label planning
    max_label_ops_per_run: int = c.MAX_LABEL_OPS_PER_RUN

    # API Security
    api_key: Optional[str] = None  # Optional API key for internal service auth
    allowed_origins: str = "http://localhost:8000,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "CN_"

    def scoring_parameters(self) -> ScoringParameters:
        """Build the engine parameters from these settings."""
        return ScoringParameters(
            min_ratings_per_note=self.min_ratings_per_note,
            min_ratings_per_rater=self.min_ratings_per_rater,
            epochs=self.mf_epochs,
            learning_rate=self.mf_learning_rate,
            reg_intercept=self.mf_intercept_regularization,
            reg_factor=self.mf_factor_regularization,
            convergence_tolerance=self.mf_convergence_tolerance,
            flip_factor_identification=self.mf_flip_factor_identification,
            nonfinite_policy=self.nonfinite_policy,
            crh_intercept=self.helpful_intercept_threshold,
            crh_max_factor=self.helpful_factor_threshold,
            crnh_base=self.not_helpful_intercept_threshold,
            crnh_factor_weight=self.not_helpful_factor_weight,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
