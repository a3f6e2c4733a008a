"""
Piecewise discretization of load curves.

A curve of ``n`` samples is approximated by ``k`` constant segments. The
parameter vector used throughout is ``[e_1, ..., e_k, a_1, ..., a_k]``:
segment ``j`` spans ``[e_{j-1}, e_j)`` (with ``e_0 = 0``) at amplitude
``a_j``. Samples past the last edge are zero.

Sample ``t`` covers the interval ``[t, t + 1)``. When an edge falls inside
a sample, the sample takes the coverage-weighted amplitudes of the segments
it straddles, which keeps the RMSE continuous in the edge positions.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging
import time

import numpy as np
from scipy.optimize import minimize

logger = logging.getLogger(__name__)


@dataclass
class PiecewiseFit:
    """Result of fitting a step function to one curve."""
    edges: np.ndarray
    amplitudes: np.ndarray
    fitted: np.ndarray
    rmse: float
    success: bool = True


def piecewise(params: Sequence[float], n: int) -> np.ndarray:
    """
    Evaluate the step function described by ``params`` on ``n`` samples.

    Args:
        params: Edges followed by amplitudes (even length)
        n: Number of samples

    Returns:
        Array of ``n`` fitted values
    """
    params = np.asarray(params, dtype=float)
    n_segments = len(params) // 2
    edges = np.clip(np.sort(params[:n_segments]), 0, n)
    amplitudes = params[n_segments:2 * n_segments]

    lower = np.concatenate(([0.0], edges[:-1]))
    upper = edges
    start = np.arange(n, dtype=float)[:, None]
    overlap = np.clip(np.minimum(start + 1, upper) - np.maximum(start, lower), 0, None)
    return overlap @ amplitudes


def rmse(params: Sequence[float], targets: Sequence[float]) -> float:
    """Root mean square error between ``piecewise(params)`` and ``targets``."""
    targets = np.asarray(targets, dtype=float)
    fitted = piecewise(params, len(targets))
    return float(np.sqrt(np.nanmean((fitted - targets) ** 2)))


def initial_guess(values: np.ndarray, n_bins: int, hour_of_min: Optional[int] = None):
    """
    Starting point and bounds for the optimizer.

    Edges start at ``anchor - anchor / (1.01 i)`` for ``i = 1..n_bins`` plus
    a final edge at the end of the curve, where the anchor is the position of
    the minimum value. Amplitudes start at ``max / (1.01 i)`` plus the
    minimum for the last segment.
    """
    n = len(values)
    vmax = float(np.nanmax(values))
    vmin = float(np.nanmin(values))
    if hour_of_min is None:
        hour_of_min = int(np.nanargmin(values))
    # A minimum on the first sample would collapse every edge onto zero
    anchor = hour_of_min or n

    edges = [anchor - anchor / (i * 1.01) for i in range(1, n_bins + 1)]
    edges.append(float(n))
    amplitudes = [vmax / (i * 1.01) for i in range(1, n_bins + 1)]
    amplitudes.append(vmin)

    edge_bounds = [(0, n)] * (n_bins + 1)
    amplitude_bounds = [(min(0.0, vmin), vmax)] * (n_bins + 1)
    return np.array(edges + amplitudes), edge_bounds + amplitude_bounds


def fit_piecewise(values: Sequence[float], n_bins: int = 3,
                  hour_of_min: Optional[int] = None) -> PiecewiseFit:
    """
    Fit ``n_bins + 1`` constant segments to ``values`` minimizing RMSE.

    Searches jointly over edges and amplitudes with L-BFGS-B.

    Args:
        values: The curve (typically a sorted load-duration curve)
        n_bins: Number of bins; ``n_bins + 1`` segments are fitted
        hour_of_min: Position used to anchor the initial edges. Defaults
            to the position of the minimum value.

    Returns:
        PiecewiseFit with sorted edges, amplitudes and fitted samples
    """
    values = np.asarray(values, dtype=float)
    if n_bins < 1:
        raise ValueError(f"n_bins must be at least 1, got {n_bins}")
    if values.size == 0 or np.isnan(values).all():
        empty = np.full(n_bins + 1, np.nan)
        return PiecewiseFit(empty, empty.copy(), np.full(values.size, np.nan), np.nan, success=False)

    x0, bounds = initial_guess(values, n_bins, hour_of_min)

    start_time = time.time()
    res = minimize(rmse, x0, args=(values,), method="L-BFGS-B", bounds=bounds)
    logger.debug(f"Completed discretization in {time.time() - start_time:,.2f} seconds")
    if not res.success:
        logger.warning(f"Discretization did not converge: {res.message}")

    n_segments = n_bins + 1
    order = np.argsort(res.x[:n_segments], kind="stable")
    edges = res.x[:n_segments][order]
    amplitudes = res.x[n_segments:]
    return PiecewiseFit(
        edges=edges,
        amplitudes=amplitudes,
        fitted=piecewise(res.x, len(values)),
        rmse=float(res.fun),
        success=bool(res.success),
    )
