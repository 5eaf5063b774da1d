"""
Bridging matrix factorization.

Each rating is predicted as

    global_intercept + rater_intercept[r] + note_intercept[n]
        + rater_factor[r] * note_factor[n]

and the parameters are fit with full-batch gradient descent using Adam.
Intercepts are regularized five times harder than factors, so variance is
explained by the viewpoint factors first. A note only earns a high
intercept when raters with different factors agree that it is helpful.
"""

import dataclasses
import logging
from typing import Dict, Optional

import numpy as np

from bridging_scorer.scoring.adam import AdamOptimizer
from bridging_scorer.scoring.indexing import RatingIndex
from bridging_scorer.scoring.parameters import ScoringParameters


logger = logging.getLogger(__name__)

GLOBAL_INTERCEPT = "global_intercept"
NOTE_INTERCEPTS = "note_intercepts"
NOTE_FACTORS = "note_factors"
RATER_INTERCEPTS = "rater_intercepts"
RATER_FACTORS = "rater_factors"

INTERCEPT_PARAMS = (GLOBAL_INTERCEPT, NOTE_INTERCEPTS, RATER_INTERCEPTS)
FACTOR_PARAMS = (NOTE_FACTORS, RATER_FACTORS)


@dataclasses.dataclass
class FitResult:
    """Fitted parameters, aligned with the positions of a RatingIndex."""

    global_intercept: float
    note_intercepts: np.ndarray
    note_factors: np.ndarray
    rater_intercepts: np.ndarray
    rater_factors: np.ndarray
    epochs_run: int
    loss: float


class BridgingMatrixFactorization:
    """
    One-factor biased matrix factorization with asymmetric L2 regularization.

    Attributes:
        params (ScoringParameters): epochs, learning rate, regularization,
            Adam constants, init scale and the optional early stopping and
            factor sign identification switches.
        log_interval (int): epochs between DEBUG loss lines.
    """

    def __init__(self, params: Optional[ScoringParameters] = None, log_interval: int = 50):
        self.params = params or ScoringParameters()
        self.log_interval = log_interval

    def initialize(self, index: RatingIndex, rng: np.random.Generator) -> Dict[str, np.ndarray]:
        """Midpoint global intercept, zero intercepts, small uniform factors.

        Note factors are drawn before rater factors so a seeded generator
        always produces the same starting point.
        """
        scale = self.params.factor_init_scale
        return {
            GLOBAL_INTERCEPT: np.full(1, self.params.global_intercept_init, dtype=np.float64),
            NOTE_INTERCEPTS: np.zeros(index.num_notes, dtype=np.float64),
            NOTE_FACTORS: rng.uniform(-scale, scale, size=index.num_notes),
            RATER_INTERCEPTS: np.zeros(index.num_raters, dtype=np.float64),
            RATER_FACTORS: rng.uniform(-scale, scale, size=index.num_raters),
        }

    def predict(self, params: Dict[str, np.ndarray], index: RatingIndex) -> np.ndarray:
        n = index.note_indexes
        r = index.rater_indexes
        return (
            params[GLOBAL_INTERCEPT][0]
            + params[RATER_INTERCEPTS][r]
            + params[NOTE_INTERCEPTS][n]
            + params[RATER_FACTORS][r] * params[NOTE_FACTORS][n]
        )

    def gradients(self, params: Dict[str, np.ndarray], index: RatingIndex) -> Dict[str, np.ndarray]:
        """Gradients of the regularized squared error for every parameter.

        Each gradient starts at its regularization term and accumulates the
        error of every rating that touches the parameter. The factor of two
        from the squared error is folded into the learning rate.
        """
        n = index.note_indexes
        r = index.rater_indexes
        err = self.predict(params, index) - index.values

        reg_i = self.params.reg_intercept
        reg_f = self.params.reg_factor
        return {
            GLOBAL_INTERCEPT: reg_i * params[GLOBAL_INTERCEPT] + err.sum(),
            NOTE_INTERCEPTS: reg_i * params[NOTE_INTERCEPTS]
            + np.bincount(n, weights=err, minlength=index.num_notes),
            NOTE_FACTORS: reg_f * params[NOTE_FACTORS]
            + np.bincount(n, weights=err * params[RATER_FACTORS][r], minlength=index.num_notes),
            RATER_INTERCEPTS: reg_i * params[RATER_INTERCEPTS]
            + np.bincount(r, weights=err, minlength=index.num_raters),
            RATER_FACTORS: reg_f * params[RATER_FACTORS]
            + np.bincount(r, weights=err * params[NOTE_FACTORS][n], minlength=index.num_raters),
        }

    def loss(self, params: Dict[str, np.ndarray], index: RatingIndex) -> float:
        """Objective whose gradient is `gradients`."""
        err = self.predict(params, index) - index.values
        reg = self.params.reg_intercept * sum(np.sum(params[k] ** 2) for k in INTERCEPT_PARAMS)
        reg += self.params.reg_factor * sum(np.sum(params[k] ** 2) for k in FACTOR_PARAMS)
        return float(0.5 * np.sum(err ** 2) + 0.5 * reg)

    def fit(self, index: RatingIndex, rng: np.random.Generator) -> FitResult:
        """Run gradient descent to fit the model.

        Runs exactly `epochs` epochs unless `convergence_tolerance` is set, in
        which case it stops once the gradient L2 norm drops below it.

        Args:
            index (RatingIndex): filtered ratings as dense arrays
            rng (np.random.Generator): source for the factor initialization

        Returns:
            FitResult
        """
        p = self.params
        params = self.initialize(index, rng)
        optimizer = AdamOptimizer(
            params,
            learning_rate=p.learning_rate,
            beta1=p.beta1,
            beta2=p.beta2,
            epsilon=p.epsilon,
        )
        logger.info(
            f"Fitting {index.num_notes} notes, {index.num_raters} raters, "
            f"{index.num_ratings} ratings for up to {p.epochs} epochs"
        )

        epoch = 0
        for epoch in range(1, p.epochs + 1):
            grads = self.gradients(params, index)
            optimizer.step(params, grads, t=epoch)

            if logger.isEnabledFor(logging.DEBUG) and epoch % self.log_interval == 0:
                logger.debug(f"epoch {epoch} loss {self.loss(params, index):.6f}")

            if p.convergence_tolerance is not None:
                grad_norm = np.sqrt(sum(np.sum(g ** 2) for g in grads.values()))
                if grad_norm < p.convergence_tolerance:
                    logger.info(f"Converged after {epoch} epochs (gradient norm {grad_norm:.3g})")
                    break

        if p.flip_factor_identification:
            flip_factors_for_identification(params)

        final_loss = self.loss(params, index)
        logger.info(
            f"Fit complete: {epoch} epochs, loss {final_loss:.6f}, "
            f"global intercept {params[GLOBAL_INTERCEPT][0]:.4f}"
        )
        return FitResult(
            global_intercept=float(params[GLOBAL_INTERCEPT][0]),
            note_intercepts=params[NOTE_INTERCEPTS],
            note_factors=params[NOTE_FACTORS],
            rater_intercepts=params[RATER_INTERCEPTS],
            rater_factors=params[RATER_FACTORS],
            epochs_run=epoch,
            loss=final_loss,
        )


def flip_factors_for_identification(params: Dict[str, np.ndarray]) -> bool:
    """Flip factor signs so that most raters have a negative factor.

    The model is invariant to flipping every factor, so this only fixes the
    orientation of the viewpoint axis between runs.

    Returns:
        bool: whether the factors were flipped
    """
    rater_factors = params[RATER_FACTORS]
    nonzero = np.count_nonzero(rater_factors)
    if nonzero == 0:
        return False
    prop_negative = np.count_nonzero(rater_factors < 0) / nonzero
    if prop_negative < 0.5:
        params[RATER_FACTORS] *= -1
        params[NOTE_FACTORS] *= -1
        return True
    return False
