import numpy as np
import pandas as pd
import pytest

from bridging_scorer.scoring.adam import AdamOptimizer
from bridging_scorer.scoring.indexing import build_index
from bridging_scorer.scoring.matrix_factorization import (
    GLOBAL_INTERCEPT,
    NOTE_FACTORS,
    NOTE_INTERCEPTS,
    RATER_FACTORS,
    RATER_INTERCEPTS,
    BridgingMatrixFactorization,
    flip_factors_for_identification,
)
from bridging_scorer.scoring.parameters import ScoringParameters

from conftest import bloc_ratings, to_frame


@pytest.fixture
def small_index():
    frame = pd.DataFrame(
        {
            "noteId": ["n1", "n1", "n2", "n2", "n3"],
            "raterDid": ["r1", "r2", "r1", "r3", "r2"],
            "helpfulness": [1.0, 0.5, 0.0, 1.0, 0.5],
        }
    )
    return build_index(frame)


class TestAdamOptimizer:
    def test_first_step_moves_by_learning_rate(self):
        params = {"w": np.array([1.0, -1.0])}
        optimizer = AdamOptimizer(params, learning_rate=0.01)
        optimizer.step(params, {"w": np.array([2.0, -0.001])}, t=1)
        assert params["w"] == pytest.approx([0.99, -0.99], abs=1e-6)

    def test_zero_gradient_leaves_params(self):
        params = {"w": np.array([0.3])}
        optimizer = AdamOptimizer(params)
        optimizer.step(params, {"w": np.array([0.0])}, t=1)
        assert params["w"][0] == 0.3

    def test_time_step_starts_at_one(self):
        params = {"w": np.zeros(1)}
        with pytest.raises(ValueError):
            AdamOptimizer(params).step(params, {"w": np.ones(1)}, t=0)


class TestBridgingMatrixFactorization:
    def test_initialization(self, small_index):
        mf = BridgingMatrixFactorization()
        params = mf.initialize(small_index, np.random.default_rng(0))
        assert params[GLOBAL_INTERCEPT][0] == 0.5
        assert not params[NOTE_INTERCEPTS].any()
        assert not params[RATER_INTERCEPTS].any()
        assert params[NOTE_FACTORS].shape == (3,)
        assert params[RATER_FACTORS].shape == (3,)
        for name in (NOTE_FACTORS, RATER_FACTORS):
            assert np.all(np.abs(params[name]) <= 0.05)
            assert params[name].any()

    def test_gradients_match_finite_differences(self, small_index):
        mf = BridgingMatrixFactorization()
        params = mf.initialize(small_index, np.random.default_rng(1))
        params[NOTE_INTERCEPTS] += np.array([0.1, -0.2, 0.05])
        params[RATER_INTERCEPTS] += np.array([-0.1, 0.0, 0.2])
        grads = mf.gradients(params, small_index)

        h = 1e-6
        for name, value in params.items():
            for i in range(value.size):
                original = value[i]
                value[i] = original + h
                up = mf.loss(params, small_index)
                value[i] = original - h
                down = mf.loss(params, small_index)
                value[i] = original
                assert grads[name][i] == pytest.approx((up - down) / (2 * h), abs=1e-5)

    def test_regularization_is_the_only_gradient_at_a_perfect_fit(self):
        frame = pd.DataFrame({"noteId": ["n1"], "raterDid": ["r1"], "helpfulness": [0.5]})
        index = build_index(frame)
        mf = BridgingMatrixFactorization()
        params = {
            GLOBAL_INTERCEPT: np.array([0.5]),
            NOTE_INTERCEPTS: np.array([0.2]),
            NOTE_FACTORS: np.array([0.0]),
            RATER_INTERCEPTS: np.array([-0.2]),
            RATER_FACTORS: np.array([0.4]),
        }
        grads = mf.gradients(params, index)
        assert grads[GLOBAL_INTERCEPT][0] == pytest.approx(0.15 * 0.5)
        assert grads[NOTE_INTERCEPTS][0] == pytest.approx(0.15 * 0.2)
        assert grads[RATER_INTERCEPTS][0] == pytest.approx(0.15 * -0.2)
        assert grads[RATER_FACTORS][0] == pytest.approx(0.03 * 0.4)
        assert grads[NOTE_FACTORS][0] == pytest.approx(0.0)

    def test_runs_all_epochs_by_default(self, small_index):
        fit = BridgingMatrixFactorization().fit(small_index, np.random.default_rng(0))
        assert fit.epochs_run == 300

    def test_early_stopping(self, small_index):
        params = ScoringParameters(convergence_tolerance=1e6)
        fit = BridgingMatrixFactorization(params).fit(small_index, np.random.default_rng(0))
        assert fit.epochs_run == 1

    def test_fit_reduces_loss(self):
        index = build_index(to_frame(bloc_ratings()))
        mf = BridgingMatrixFactorization()
        start = mf.loss(mf.initialize(index, np.random.default_rng(3)), index)
        fit = mf.fit(index, np.random.default_rng(3))
        assert fit.loss < start

    def test_same_seed_gives_identical_fit(self):
        index = build_index(to_frame(bloc_ratings()))
        mf = BridgingMatrixFactorization()
        first = mf.fit(index, np.random.default_rng(11))
        second = mf.fit(index, np.random.default_rng(11))
        assert first.global_intercept == second.global_intercept
        np.testing.assert_array_equal(first.note_intercepts, second.note_intercepts)
        np.testing.assert_array_equal(first.note_factors, second.note_factors)
        np.testing.assert_array_equal(first.rater_factors, second.rater_factors)

    def test_bloc_raters_get_opposite_factors(self):
        ratings = bloc_ratings()
        index = build_index(to_frame(ratings))
        fit = BridgingMatrixFactorization().fit(index, np.random.default_rng(5))
        raters = pd.Series(fit.rater_factors, index=index.rater_ids)
        bloc_a = raters[[r for r in index.rater_ids if r.startswith("did:plc:a")]]
        bloc_b = raters[[r for r in index.rater_ids if r.startswith("did:plc:b")]]
        assert np.sign(bloc_a).nunique() == 1
        assert np.sign(bloc_b).nunique() == 1
        assert np.sign(bloc_a.iloc[0]) != np.sign(bloc_b.iloc[0])


def test_flip_factors_for_identification():
    params = {
        NOTE_FACTORS: np.array([0.5, -0.2]),
        RATER_FACTORS: np.array([0.3, 0.1, -0.4]),
    }
    assert flip_factors_for_identification(params)
    assert params[RATER_FACTORS].tolist() == [-0.3, -0.1, 0.4]
    assert params[NOTE_FACTORS].tolist() == [-0.5, 0.2]
    assert not flip_factors_for_identification(params)
