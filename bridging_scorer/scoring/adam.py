"""Adam updates over named blocks of numpy parameters."""

from typing import Dict

import numpy as np

from bridging_scorer.scoring import constants as c


class AdamOptimizer:
    """
    Adam with bias-corrected moment estimates.

    Keeps one first-moment and one second-moment array per parameter block
    and updates the parameter arrays in place. The caller supplies the time
    step, which starts at 1.
    """

    def __init__(
        self,
        params: Dict[str, np.ndarray],
        learning_rate: float = c.LEARNING_RATE,
        beta1: float = c.BETA1,
        beta2: float = c.BETA2,
        epsilon: float = c.EPSILON,
    ):
        self.learning_rate = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.epsilon = epsilon
        self._m = {name: np.zeros_like(value) for name, value in params.items()}
        self._v = {name: np.zeros_like(value) for name, value in params.items()}

    def step(self, params: Dict[str, np.ndarray], grads: Dict[str, np.ndarray], t: int) -> None:
        if t < 1:
            raise ValueError(f"Adam time step must start at 1, got {t}")
        bias1 = 1.0 - self.beta1 ** t
        bias2 = 1.0 - self.beta2 ** t
        for name, grad in grads.items():
            m = self._m[name]
            v = self._v[name]
            m *= self.beta1
            m += (1.0 - self.beta1) * grad
            v *= self.beta2
            v += (1.0 - self.beta2) * grad * grad
            m_hat = m / bias1
            v_hat = v / bias2
            params[name] -= self.learning_rate * m_hat / (np.sqrt(v_hat) + self.epsilon)
