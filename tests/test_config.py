import pytest
from pydantic import ValidationError

from bridging_scorer.config import Settings
from bridging_scorer.scoring import ScoringParameters


def test_defaults_match_reference_constants():
    params = Settings().scoring_parameters()
    assert params == ScoringParameters()
    assert params.min_ratings_per_note == 5
    assert params.min_ratings_per_rater == 10
    assert params.epochs == 300
    assert params.learning_rate == 0.01
    assert params.reg_intercept == 0.15
    assert params.reg_factor == 0.03
    assert (params.beta1, params.beta2, params.epsilon) == (0.9, 0.999, 1e-8)
    assert params.crh_intercept == 0.40
    assert params.crh_max_factor == 0.50
    assert (params.crnh_base, params.crnh_factor_weight) == (-0.05, 0.8)
    assert params.convergence_tolerance is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CN_MF_EPOCHS", "50")
    monkeypatch.setenv("CN_RANDOM_SEED", "7")
    monkeypatch.setenv("CN_NONFINITE_POLICY", "raise")
    settings = Settings()
    assert settings.random_seed == 7
    params = settings.scoring_parameters()
    assert params.epochs == 50
    assert params.nonfinite_policy == "raise"


def test_parameters_are_validated():
    with pytest.raises(ValidationError):
        ScoringParameters(epochs=0)
    with pytest.raises(ValidationError):
        ScoringParameters(nonfinite_policy="clamp")


def test_parameters_are_frozen():
    params = ScoringParameters()
    with pytest.raises(ValidationError):
        params.epochs = 10
