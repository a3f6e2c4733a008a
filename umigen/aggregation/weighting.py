"""
Weighted aggregation primitives.

Two reducers are used by every aggregator in this package:

- ``weighted_mean``: sum(value * weight) / sum(weight), for quantities that
  can be averaged (power densities, fractions, air change rates)
- ``top``: the value of the row carrying the largest weight, for
  categorical attributes (schedule names, end-use categories)

Weights are the product of one or more columns of the frame the values
come from, e.g. floor area x zone multiplier. Values and frame are matched
by position, so duplicated index labels are fine and duplicated rows count
as many times as they appear.
"""

from typing import Any, Hashable, List, Sequence, Union
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

WeightColumns = Union[Hashable, Sequence[Hashable]]


def _as_list(weighting_variable: WeightColumns) -> List[Hashable]:
    if isinstance(weighting_variable, list):
        return weighting_variable
    return [weighting_variable]


def combined_weights(df: pd.DataFrame, weighting_variable: WeightColumns) -> np.ndarray:
    """
    Product of the weighting columns, row by row.

    Unparseable or missing weights are NaN; a missing column makes every
    weight NaN.
    """
    columns = _as_list(weighting_variable)
    weights = np.ones(len(df), dtype=float)
    for column in columns:
        if column not in df.columns:
            logger.warning(f"No such weighting column {column} in DataFrame")
            return np.full(len(df), np.nan)
        weights = weights * pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)
    return weights


def _check_aligned(series: pd.Series, df: pd.DataFrame) -> None:
    if len(series) != len(df):
        raise ValueError(
            f"Values ({len(series)} rows) and weighting frame ({len(df)} rows) "
            f"must have the same rows"
        )


def weighted_mean(series: pd.Series, df: pd.DataFrame, weighting_variable: WeightColumns) -> float:
    """
    Weighted average of ``series`` using columns of ``df`` as weights.

    Rows with a missing value or a missing weight are left out of both the
    numerator and the denominator.

    Args:
        series: Values to average, row-aligned with ``df``
        df: Frame holding the weighting columns
        weighting_variable: A column key or a list of keys (multiplied)

    Returns:
        The weighted mean, or NaN when the total weight is zero
    """
    _check_aligned(series, df)
    values = pd.to_numeric(series, errors="coerce").to_numpy(dtype=float)
    weights = combined_weights(df, weighting_variable)

    valid = ~np.isnan(values) & ~np.isnan(weights)
    total = weights[valid].sum()
    if total == 0:
        logger.debug(f"Cannot aggregate empty series {series.name}")
        return np.nan
    return float((values[valid] * weights[valid]).sum() / total)


def top(series: pd.Series, df: pd.DataFrame, weighting_variable: WeightColumns) -> Any:
    """
    Value of ``series`` on the row with the largest combined weight.

    Ties go to the first such row.

    Args:
        series: Values (usually categorical), row-aligned with ``df``
        df: Frame holding the weighting columns
        weighting_variable: A column key or a list of keys (multiplied)

    Returns:
        The selected value, or NaN when no row has a weight
    """
    _check_aligned(series, df)
    weights = combined_weights(df, weighting_variable)
    if len(weights) == 0 or np.isnan(weights).all():
        return np.nan
    return series.iloc[int(np.nanargmax(weights))]


def safe_column(df: pd.DataFrame, key: Hashable) -> pd.Series:
    """
    Return column ``key`` of ``df``, or an all-NaN column when it is absent.

    A missing column is logged as a warning so the statistic that needed it
    can be NaN without stopping the aggregation.
    """
    try:
        return df[key]
    except KeyError:
        logger.warning(f"No such column {key} in DataFrame")
        return pd.Series(np.nan, index=df.index, name=key, dtype=float)
