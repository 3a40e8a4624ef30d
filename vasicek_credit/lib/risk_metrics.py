"""Loss-distribution metrics and scenario reports."""

from typing import List, Sequence
import numpy as np
import pandas as pd

from .exceptions import InvalidInputError, InvalidParameterError


def _var_index(n: int, confidence: float) -> int:
    if not 0 <= confidence < 1:
        raise InvalidParameterError(f"confidence must be in [0, 1), got {confidence}")
    if n == 0:
        raise InvalidInputError("Cannot compute a quantile of an empty loss vector")
    return min(int(np.floor(n * confidence)), n - 1)


def empirical_var(sorted_losses: np.ndarray, confidence: float = 0.99) -> float:
    """Empirical Value at Risk: sorted_losses[floor(N x confidence)].

    No interpolation; the result is a loss level, not an excess over the
    mean. `sorted_losses` must already be in ascending order.
    """
    losses = np.asarray(sorted_losses, dtype=float)
    return float(losses[_var_index(losses.size, confidence)])


def expected_shortfall(sorted_losses: np.ndarray, confidence: float = 0.99) -> float:
    """Expected Shortfall: mean of the losses from the VaR index upward."""
    losses = np.asarray(sorted_losses, dtype=float)
    return float(np.mean(losses[_var_index(losses.size, confidence):]))


def create_scenario_report(results: Sequence) -> pd.DataFrame:
    """Create a DataFrame comparing simulation results.

    Args:
        results: SimulationResult objects, e.g. baseline and stressed

    Returns:
        DataFrame indexed by scenario name
    """
    data = []
    for result in results:
        data.append({
            'Scenario': result.scenario_name,
            'Stress_Factor': result.stress_factor,
            'Rho': result.rho,
            'Iterations': result.num_iterations,
            'Mean_EL': result.mean_expected_loss,
            'VaR_99': result.value_at_risk_99,
            'Unexpected_Loss': result.unexpected_loss,
            'ES_99': result.get_expected_shortfall(0.99),
            'Loss_Std': result.loss_std,
            'Processing_Time_ms': result.processing_time_ms
        })

    df = pd.DataFrame(data)
    return df.set_index('Scenario')


def create_loss_histogram(baseline_losses: np.ndarray, stressed_losses: np.ndarray,
                          bins: int = 20) -> pd.DataFrame:
    """Bin two loss vectors on a shared equal-width grid.

    Args:
        baseline_losses: Losses of the baseline scenario
        stressed_losses: Losses of the stressed scenario
        bins: Number of bins spanning the combined min..max range

    Returns:
        DataFrame with columns bin, lower, upper, baseline_frequency,
        stressed_frequency
    """
    if bins <= 0:
        raise InvalidParameterError(f"bins must be positive, got {bins}")
    baseline = np.asarray(baseline_losses, dtype=float)
    stressed = np.asarray(stressed_losses, dtype=float)
    if baseline.size == 0 or stressed.size == 0:
        raise InvalidInputError("Cannot bin an empty loss vector")

    lo = min(baseline.min(), stressed.min())
    hi = max(baseline.max(), stressed.max())
    if hi == lo:
        hi = lo + 1.0
    edges = np.linspace(lo, hi, bins + 1)

    baseline_counts, _ = np.histogram(baseline, bins=edges)
    stressed_counts, _ = np.histogram(stressed, bins=edges)

    return pd.DataFrame({
        'bin': np.arange(bins),
        'lower': edges[:-1],
        'upper': edges[1:],
        'baseline_frequency': baseline_counts,
        'stressed_frequency': stressed_counts,
    })
