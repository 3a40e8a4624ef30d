"""Pytest fixtures for credit loss engine tests."""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vasicek_credit import (
    Loan,
    Portfolio,
    GeneratorStream,
    VasicekEngine,
    generate_portfolio,
    train_pd_model,
)


@pytest.fixture
def sample_loan():
    """Create a simple trained loan for testing."""
    return Loan(
        id=0,
        ead=1000.0,
        lgd=0.6,
        prior_late_payments=2,
        pd=0.05,
        defaulted=False
    )


@pytest.fixture
def three_loan_portfolio():
    """Three trained loans with known EAD and PD (expected loss = 246)."""
    return Portfolio([
        Loan(id=0, ead=1000.0, lgd=0.6, prior_late_payments=0, pd=0.01),
        Loan(id=1, ead=2000.0, lgd=0.6, prior_late_payments=1, pd=0.05),
        Loan(id=2, ead=3000.0, lgd=0.6, prior_late_payments=3, pd=0.10),
    ], name="ThreeLoans")


@pytest.fixture
def generated_portfolio():
    """Untrained synthetic portfolio of 1000 loans from a fixed seed."""
    return generate_portfolio(1000, stream=GeneratorStream(42))


@pytest.fixture
def trained_portfolio(generated_portfolio):
    """Synthetic portfolio with fitted PDs."""
    return train_pd_model(generated_portfolio)


@pytest.fixture
def small_trained_portfolio():
    """Smaller trained portfolio to keep simulation tests fast."""
    return train_pd_model(generate_portfolio(200, stream=GeneratorStream(7)))


@pytest.fixture
def vasicek_engine():
    """Create a Vasicek engine with a fixed random state."""
    return VasicekEngine(GeneratorStream(42))


@pytest.fixture
def uniform_grid():
    """Deterministic uniforms covering (0, 1)."""
    return np.linspace(0.01, 0.99, 99)
