"""Default parameters for generation, training and simulation."""

from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import InvalidParameterError

# (scenario name, stress factor) pairs run against one trained portfolio
DEFAULT_SCENARIOS: Tuple[Tuple[str, float], ...] = (
    ("Baseline Scenario", 1.0),
    ("Severe Downturn", 2.5),
)

# Iterations per vectorised batch; bounds the (batch x loans) PD matrix
DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class GenerationPolicy:
    """Synthetic loan generation policy.

    Attributes:
        ead_min: Lower bound of the uniform EAD draw (inclusive)
        ead_max: Upper bound of the uniform EAD draw (exclusive)
        lgd: Loss given default applied to every loan
        max_late_payments: Largest late-payment count drawn (inclusive)
        latent_intercept: Constant of the latent default score
        latent_slope: Weight of prior late payments in the latent score
        noise_scale: Width of the uniform noise added to the latent score
    """
    ead_min: float = 500.0
    ead_max: float = 5000.0
    lgd: float = 0.6
    max_late_payments: int = 5
    latent_intercept: float = -3.0
    latent_slope: float = 0.8
    noise_scale: float = 1.5

    def __post_init__(self):
        if not 0 < self.ead_min < self.ead_max:
            raise InvalidParameterError(
                f"EAD range must satisfy 0 < min < max, got [{self.ead_min}, {self.ead_max})"
            )
        if not 0 < self.lgd <= 1:
            raise InvalidParameterError(f"LGD must be in (0, 1], got {self.lgd}")
        if self.max_late_payments < 0:
            raise InvalidParameterError(
                f"max_late_payments must be non-negative, got {self.max_late_payments}"
            )
        if self.noise_scale < 0:
            raise InvalidParameterError(
                f"noise_scale must be non-negative, got {self.noise_scale}"
            )


@dataclass(frozen=True)
class TrainingConfig:
    """Gradient descent hyperparameters for the logistic PD model."""
    initial_intercept: float = -1.0
    initial_beta: float = 0.5
    learning_rate: float = 0.01
    epochs: int = 500

    def __post_init__(self):
        if self.learning_rate <= 0:
            raise InvalidParameterError(
                f"learning_rate must be positive, got {self.learning_rate}"
            )
        if self.epochs < 0:
            raise InvalidParameterError(f"epochs must be non-negative, got {self.epochs}")


@dataclass(frozen=True)
class SimulationConfig:
    """Pipeline-level defaults chosen by the calling layer.

    Attributes:
        num_loans: Size of the generated portfolio
        iterations: Monte Carlo draws per scenario
        rho: Asset correlation with the systemic factor
        batch_size: Iterations evaluated per vectorised batch (None = all at once)
        random_state: Seed for the pipeline's random stream
    """
    num_loans: int = 1000
    iterations: int = 10000
    rho: float = 0.2
    batch_size: Optional[int] = DEFAULT_BATCH_SIZE
    random_state: Optional[int] = None

    def __post_init__(self):
        if self.num_loans <= 0:
            raise InvalidParameterError(f"num_loans must be positive, got {self.num_loans}")
        if self.iterations <= 0:
            raise InvalidParameterError(f"iterations must be positive, got {self.iterations}")
        if not 0 <= self.rho < 1:
            raise InvalidParameterError(f"rho must be in [0, 1), got {self.rho}")
        if self.batch_size is not None and self.batch_size <= 0:
            raise InvalidParameterError(f"batch_size must be positive, got {self.batch_size}")
