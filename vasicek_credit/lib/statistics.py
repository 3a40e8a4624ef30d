"""Standard normal primitives used by the Vasicek transform."""

from typing import Union
import numpy as np
from scipy.stats import norm

from .exceptions import InvalidParameterError, NumericDomainError

ArrayLike = Union[float, np.ndarray]


def _as_output(values: np.ndarray, scalar: bool) -> ArrayLike:
    return float(values) if scalar else values


def norm_cdf(x: ArrayLike) -> ArrayLike:
    """Standard normal CDF, Φ(x).

    Args:
        x: Scalar or array of real values

    Returns:
        Φ(x) with the same shape as the input (float for scalar input)

    Raises:
        NumericDomainError: If any input is NaN
    """
    scalar = np.ndim(x) == 0
    values = np.asarray(x, dtype=float)
    if np.any(np.isnan(values)):
        raise NumericDomainError("norm_cdf", x)
    return _as_output(norm.cdf(values), scalar)


def norm_inv(p: ArrayLike) -> ArrayLike:
    """Standard normal quantile function, Φ⁻¹(p).

    Args:
        p: Scalar or array of probabilities, each strictly inside (0, 1)

    Returns:
        Φ⁻¹(p) with the same shape as the input (float for scalar input)

    Raises:
        NumericDomainError: If any probability is <= 0, >= 1 or NaN
    """
    scalar = np.ndim(p) == 0
    values = np.asarray(p, dtype=float)
    if not np.all((values > 0) & (values < 1)):
        raise NumericDomainError("norm_inv", p)
    return _as_output(norm.ppf(values), scalar)


def vasicek_conditional_pd(probit_pd: ArrayLike, systemic: ArrayLike,
                           rho: float) -> np.ndarray:
    """Conditional PD under the single-factor model.

        PD(s) = Φ( (Φ⁻¹(PD) + s) / √(1 - ρ) )

    Broadcasts a column of systemic components against a row of probit PDs,
    so passing shapes (n, 1) and (m,) yields an (n, m) matrix.

    Args:
        probit_pd: Φ⁻¹ of the base PDs
        systemic: Scaled systemic component(s) s = √ρ·√stress·Z
        rho: Asset correlation in [0, 1)

    Returns:
        Array of conditional PDs

    Raises:
        InvalidParameterError: If rho is outside [0, 1) or NaN
    """
    if not 0 <= rho < 1:
        raise InvalidParameterError(f"rho must be in [0, 1), got {rho}")
    denominator = np.sqrt(1.0 - rho)
    return norm.cdf((np.asarray(probit_pd) + np.asarray(systemic)) / denominator)
