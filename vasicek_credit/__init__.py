"""Vasicek single risk factor model for credit portfolio loss distributions.

This package estimates portfolio loss under the Vasicek Asymptotic Single
Risk Factor (ASRF) model, with base PDs from a logistic regression fitted
on a synthetic loan book.

Main components:
- generator: Synthetic loan portfolio with an embedded default signal
- model: Gradient descent logistic regression producing per-loan PD
- statistics: Standard normal CDF and inverse CDF
- simulation: Vasicek Monte Carlo engine (mean EL, VaR99, sorted losses)
- risk_metrics: Expected Shortfall, scenario reports and loss histograms
"""

from .lib.exceptions import (
    CreditRiskError,
    InvalidInputError,
    InvalidParameterError,
    NumericDomainError
)
from .lib.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SCENARIOS,
    GenerationPolicy,
    TrainingConfig,
    SimulationConfig
)
from .lib.statistics import norm_cdf, norm_inv, vasicek_conditional_pd
from .lib.random_stream import RandomStream, GeneratorStream, SequenceStream, as_stream
from .lib.portfolio import Loan, Portfolio
from .lib.generator import generate_portfolio
from .lib.model import LogisticPDModel, train_pd_model
from .lib.simulation import (
    VasicekEngine,
    ParallelVasicekEngine,
    SimulationResult,
    simulate
)
from .lib.risk_metrics import (
    empirical_var,
    expected_shortfall,
    create_scenario_report,
    create_loss_histogram
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "CreditRiskError",
    "InvalidInputError",
    "InvalidParameterError",
    "NumericDomainError",
    # Configuration
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_SCENARIOS",
    "GenerationPolicy",
    "TrainingConfig",
    "SimulationConfig",
    # Statistics
    "norm_cdf",
    "norm_inv",
    "vasicek_conditional_pd",
    # Random streams
    "RandomStream",
    "GeneratorStream",
    "SequenceStream",
    "as_stream",
    # Portfolio
    "Loan",
    "Portfolio",
    "generate_portfolio",
    # Model
    "LogisticPDModel",
    "train_pd_model",
    # Simulation
    "VasicekEngine",
    "ParallelVasicekEngine",
    "SimulationResult",
    "simulate",
    # Risk metrics
    "empirical_var",
    "expected_shortfall",
    "create_scenario_report",
    "create_loss_histogram",
]
