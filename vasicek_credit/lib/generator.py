"""Synthetic loan portfolio generation.

Defaults are produced from a latent score that rises with prior late
payments, so a logistic fit on the generated data recovers a positive
late-payment coefficient:

    latent = -3 + 0.8 x late_payments + U[0, 1.5)
    defaulted = latent > 0
"""

import numbers
from typing import Optional

import numpy as np

from .config import GenerationPolicy
from .exceptions import InvalidInputError
from .portfolio import Loan, Portfolio
from .random_stream import RandomStream, as_stream


def generate_portfolio(count: int, stream: Optional[RandomStream] = None,
                       policy: Optional[GenerationPolicy] = None,
                       name: str = "Synthetic Portfolio") -> Portfolio:
    """Generate a synthetic loan portfolio.

    Loans get ids 0..count-1. Each loan consumes three uniforms from the
    stream, in order: EAD, late payments, latent noise.

    Args:
        count: Number of loans to generate
        stream: Random source (None = fresh GeneratorStream)
        policy: Generation constants (None = reference policy)
        name: Portfolio name

    Returns:
        Portfolio with untrained loans (pd = 0)
    """
    if (isinstance(count, bool) or not isinstance(count, numbers.Integral)
            or count <= 0):
        raise InvalidInputError(f"Loan count must be a positive integer, got {count!r}")

    policy = policy or GenerationPolicy()
    stream = as_stream(stream)

    draws = stream.uniform(3 * count).reshape(count, 3)
    eads = policy.ead_min + draws[:, 0] * (policy.ead_max - policy.ead_min)
    late_payments = np.floor(draws[:, 1] * (policy.max_late_payments + 1)).astype(int)
    latent = (policy.latent_intercept + policy.latent_slope * late_payments
              + draws[:, 2] * policy.noise_scale)
    defaulted = latent > 0

    loans = (
        Loan(
            id=i,
            ead=float(eads[i]),
            lgd=policy.lgd,
            prior_late_payments=int(late_payments[i]),
            pd=0.0,
            defaulted=bool(defaulted[i])
        )
        for i in range(count)
    )
    return Portfolio(loans, name=name)
