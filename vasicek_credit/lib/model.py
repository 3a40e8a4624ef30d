"""Logistic regression PD model fitted by batch gradient descent."""

import logging
from typing import List, Optional, Union
import numpy as np
from scipy.special import expit

from .config import TrainingConfig
from .exceptions import InvalidInputError
from .portfolio import Portfolio

logger = logging.getLogger(__name__)

# Fitted PDs are kept inside [PD_FLOOR, 1 - PD_FLOOR] so Φ⁻¹(PD) is finite
PD_FLOOR = 1e-12


class LogisticPDModel:
    """Univariate logistic regression on prior late payments.

    Implements:
        z  = intercept + beta x late_payments
        PD = 1 / (1 + exp(-z))

    Trained by full-batch gradient descent on the average cross-entropy
    for a fixed number of epochs; there is no convergence check, so a fit
    on the same portfolio is always reproducible.
    """

    def __init__(self, config: Optional[TrainingConfig] = None):
        """Initialize the model.

        Args:
            config: Gradient descent hyperparameters. If None, uses defaults.
        """
        self.config = config or TrainingConfig()
        self.intercept = self.config.initial_intercept
        self.beta = self.config.initial_beta
        self.loss_history: List[float] = []
        self._fitted = False

    @property
    def is_fitted(self) -> bool:
        return self._fitted

    def fit(self, portfolio: Portfolio) -> "LogisticPDModel":
        """Fit intercept and beta to the portfolio's default labels.

        Args:
            portfolio: Loans carrying `prior_late_payments` and `defaulted`

        Returns:
            self
        """
        if len(portfolio) == 0:
            raise InvalidInputError("Cannot train PD model on an empty portfolio")

        x = portfolio.late_payments()
        y = portfolio.default_labels()
        lr = self.config.learning_rate

        intercept = self.config.initial_intercept
        beta = self.config.initial_beta
        history = []

        for _ in range(self.config.epochs):
            prediction = expit(intercept + beta * x)
            error = prediction - y
            d_intercept = np.mean(error)
            d_beta = np.mean(error * x)

            history.append(_cross_entropy(prediction, y))

            intercept -= lr * d_intercept
            beta -= lr * d_beta

        self.intercept = float(intercept)
        self.beta = float(beta)
        self.loss_history = history
        self._fitted = True

        logger.info(
            f"PD model trained on {len(portfolio)} loans: "
            f"intercept={self.intercept:.4f}, beta={self.beta:.4f}"
        )
        return self

    def predict_pd(self, late_payments: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Predict PD for one or more late-payment counts."""
        pd = np.clip(expit(self.intercept + self.beta * np.asarray(late_payments, dtype=float)),
                     PD_FLOOR, 1 - PD_FLOOR)
        return float(pd) if np.ndim(pd) == 0 else pd

    def log_loss(self, portfolio: Portfolio) -> float:
        """Average cross-entropy of the current coefficients on a portfolio."""
        if len(portfolio) == 0:
            raise InvalidInputError("Cannot evaluate log loss on an empty portfolio")
        prediction = self.predict_pd(portfolio.late_payments())
        return _cross_entropy(prediction, portfolio.default_labels())

    def apply(self, portfolio: Portfolio) -> Portfolio:
        """Return a new portfolio with every loan's base PD set by this model."""
        if not self._fitted:
            raise InvalidInputError("PD model must be fitted before it is applied")
        return portfolio.with_pds(np.atleast_1d(self.predict_pd(portfolio.late_payments())))

    def __repr__(self) -> str:
        return (f"LogisticPDModel(intercept={self.intercept:.4f}, "
                f"beta={self.beta:.4f}, fitted={self._fitted})")


def _cross_entropy(prediction: np.ndarray, labels: np.ndarray) -> float:
    p = np.clip(prediction, PD_FLOOR, 1 - PD_FLOOR)
    return float(-np.mean(labels * np.log(p) + (1 - labels) * np.log(1 - p)))


def train_pd_model(portfolio: Portfolio,
                   config: Optional[TrainingConfig] = None) -> Portfolio:
    """Fit the logistic PD model and assign a base PD to every loan.

    The input portfolio is left untouched; all fields other than `pd` are
    carried over unchanged.

    Args:
        portfolio: Generated portfolio with default labels
        config: Gradient descent hyperparameters (None = defaults)

    Returns:
        New Portfolio whose loans carry PDs strictly inside (0, 1)
    """
    model = LogisticPDModel(config).fit(portfolio)
    return model.apply(portfolio)
