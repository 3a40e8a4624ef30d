"""Core library modules for credit loss simulation.

This subpackage contains the core implementation:
- statistics: Standard normal CDF / quantile and the Vasicek transform
- random_stream: Explicit, swappable random sources
- portfolio: Loan and Portfolio data structures
- generator: Synthetic portfolio generation
- model: Logistic regression PD model
- simulation: Vasicek Monte Carlo engine
- risk_metrics: VaR / ES and scenario reports
"""

from .exceptions import (
    CreditRiskError,
    InvalidInputError,
    InvalidParameterError,
    NumericDomainError
)
from .config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SCENARIOS,
    GenerationPolicy,
    TrainingConfig,
    SimulationConfig
)
from .statistics import norm_cdf, norm_inv, vasicek_conditional_pd
from .random_stream import RandomStream, GeneratorStream, SequenceStream, as_stream
from .portfolio import Loan, Portfolio
from .generator import generate_portfolio
from .model import LogisticPDModel, train_pd_model
from .simulation import (
    VasicekEngine,
    ParallelVasicekEngine,
    SimulationResult,
    simulate
)
from .risk_metrics import (
    empirical_var,
    expected_shortfall,
    create_scenario_report,
    create_loss_histogram
)

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
