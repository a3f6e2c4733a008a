"""
EnergyProfile - Time-indexed load curves.

A profile is a numeric series with a single time index, or a two-level
``(Archetype, TimeStep)`` index when it holds one curve per archetype.
Sorting, normalization and discretization always work per archetype
partition; ``concurrent_sort`` is the one operation that looks across
partitions.

Usage:
    profile = EnergyProfile(values, frequency="Hourly", units="J")
    ldc = profile.sort()                 # load-duration curve
    blocks = ldc.normalize().discretize(n_bins=3)
    print(blocks.bin_edges, blocks.bin_scaling_factors)
"""

import copy
from typing import Dict, List, Optional
import logging

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler

from ..core.config import settings
from .discretization import fit_piecewise

logger = logging.getLogger(__name__)


# Reporting frequency names -> pandas offset aliases
FREQUENCY_ALIASES = {
    "hourly": "h",
    "h": "h",
    "1h": "h",
    "daily": "D",
    "d": "D",
    "1d": "D",
    "monthly": "MS",
    "m": "MS",
    "ms": "MS",
}


def to_offset_alias(frequency: str) -> str:
    """Translate a reporting frequency ("Hourly", "1H", ...) to a pandas alias."""
    if frequency is None:
        raise ValueError("A frequency is required to build a calendar index")
    return FREQUENCY_ALIASES.get(str(frequency).lower(), frequency)


def _ordered(values: np.ndarray, ascending: bool) -> np.ndarray:
    keys = values if ascending else -values
    return values[np.argsort(keys, kind="stable")]


class EnergyProfile:
    """
    A load curve with units, frequency and optional archetype partitions.

    Args:
        data: Values (Series, array or list)
        frequency: Sampling interval, e.g. "Hourly"
        units: Units of the values
        profile_type: Semantic label, e.g. "heating load"
        index: Index for non-Series data
        name: Series name
        base_year: Calendar year used by ``monthly``
        normalize: Min-max scale each partition after construction
        is_sorted: Sort each partition after construction
        ascending: Sort order when ``is_sorted``
        concurrent_sort: Use ``concurrent_sort`` instead of ``sort``
    """

    def __init__(
        self,
        data,
        frequency: Optional[str],
        units: Optional[str],
        profile_type: str = "undefined",
        index=None,
        name: Optional[str] = None,
        base_year: Optional[int] = None,
        normalize: bool = False,
        is_sorted: bool = False,
        ascending: bool = False,
        concurrent_sort: bool = False,
    ):
        if isinstance(data, pd.Series):
            series = data.copy()
            if index is not None:
                series.index = index
            if name is not None:
                series.name = name
        else:
            series = pd.Series(data, index=index, name=name)
        self._series = pd.to_numeric(series, errors="coerce").astype(float)
        # capacity_factor is defined on the values as constructed
        self._raw = self._series.copy()

        self.profile_type = profile_type
        self.frequency = frequency
        self.units = units
        self.base_year = base_year if base_year is not None else settings.base_year
        self.is_sorted = False
        self.bin_edges_ = None
        self.bin_scaling_factors_ = None

        if is_sorted:
            if concurrent_sort:
                self.concurrent_sort(ascending=ascending, inplace=True)
            else:
                self.sort(ascending=ascending, inplace=True)

        if normalize:
            self.normalize(inplace=True)

    # ------------------------------------------------------------------
    # Basic accessors
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._series)

    def __repr__(self) -> str:
        partitions = f", archetypes={len(self.archetypes)}" if self.is_partitioned else ""
        return (
            f"EnergyProfile(profile_type={self.profile_type!r}, frequency={self.frequency!r}, "
            f"units={self.units!r}, n={len(self)}{partitions}, is_sorted={self.is_sorted})"
        )

    @property
    def values(self) -> np.ndarray:
        return self._series.to_numpy()

    @property
    def index(self) -> pd.Index:
        return self._series.index

    @property
    def name(self):
        return self._series.name

    def to_series(self) -> pd.Series:
        """Return a copy of the underlying pandas Series."""
        return self._series.copy()

    @property
    def is_partitioned(self) -> bool:
        return isinstance(self._series.index, pd.MultiIndex)

    @property
    def archetypes(self) -> Optional[List]:
        """Archetype partition keys in order of appearance, or None."""
        if not self.is_partitioned:
            return None
        return list(pd.unique(self._series.index.get_level_values(0)))

    @property
    def empty(self) -> bool:
        return self._series.empty

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _partitions(self, series: Optional[pd.Series] = None):
        series = self._series if series is None else series
        if isinstance(series.index, pd.MultiIndex):
            yield from series.groupby(level=0, sort=False)
        else:
            yield None, series

    def _new(self, series: pd.Series, **attributes) -> "EnergyProfile":
        new = copy.copy(self)
        new._series = series
        for key, value in attributes.items():
            setattr(new, key, value)
        return new

    def _finish(self, result: "EnergyProfile", inplace: bool) -> Optional["EnergyProfile"]:
        if inplace:
            self.__dict__.update(result.__dict__)
            return None
        return result

    def _map_partitions(self, func) -> pd.Series:
        pieces = []
        for _, sub in self._partitions():
            pieces.append(pd.Series(func(sub), index=sub.index, name=sub.name))
        if not pieces:
            return self._series.copy()
        return pd.concat(pieces)

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def sort(self, ascending: bool = False, inplace: bool = False) -> Optional["EnergyProfile"]:
        """
        Sort the values of each archetype partition independently.

        Values are reordered onto the partition's existing time-step labels,
        so position ``i`` of every partition holds its ``i``-th largest
        (or smallest) value.
        """
        result = self._map_partitions(lambda sub: _ordered(sub.to_numpy(), ascending))
        return self._finish(self._new(result, is_sorted=True), inplace)

    def concurrent_sort(self, ascending: bool = False, level: int = 0,
                        inplace: bool = False) -> Optional["EnergyProfile"]:
        """
        Sort all partitions by their coincident total.

        The partitions are summed at each time step and every partition is
        reordered by the permutation that sorts that total, which keeps
        simultaneous values aligned across partitions.

        Args:
            ascending: Sort order of the coincident total
            level: Index level holding the partition key
            inplace: Modify this profile instead of returning a new one
        """
        if not self.is_partitioned:
            return self.sort(ascending=ascending, inplace=inplace)

        index = self._series.index
        partition_name = index.names[level]
        time_name = [n for i, n in enumerate(index.names) if i != level][0]

        concurrent = self._series.unstack(level=level)
        total = concurrent.sum(axis=1)
        order = total.sort_values(ascending=ascending, kind="stable").index

        reordered = concurrent.loc[order, :]
        reordered.index = concurrent.index
        pieces = {key: reordered[key] for key in reordered.columns}
        stacked = pd.concat(pieces, names=[partition_name, time_name])
        if level != 0:
            stacked = stacked.swaplevel()
        result = stacked.reindex(index)
        result.name = self._series.name
        return self._finish(self._new(result, is_sorted=True), inplace)

    def normalize(self, inplace: bool = False) -> Optional["EnergyProfile"]:
        """Min-max scale each archetype partition into [0, 1]."""
        def scale(sub: pd.Series) -> np.ndarray:
            if sub.empty:
                return sub.to_numpy()
            scaler = MinMaxScaler()
            return scaler.fit_transform(sub.to_numpy().reshape(-1, 1)).ravel()

        result = self._map_partitions(scale)
        return self._finish(self._new(result), inplace)

    def discretize(self, n_bins: Optional[int] = None, hour_of_min: Optional[int] = None,
                   inplace: bool = False) -> Optional["EnergyProfile"]:
        """
        Approximate each partition by ``n_bins + 1`` constant segments.

        The fitted edges and amplitudes are stored in ``bin_edges_`` and
        ``bin_scaling_factors_`` (one row per archetype for partitioned
        profiles) and the returned profile holds the fitted step curve.

        Args:
            n_bins: Number of bins (defaults to ``settings.default_n_bins``)
            hour_of_min: Anchor for the initial edge guess. Defaults to the
                position of each partition's minimum.
            inplace: Modify this profile instead of returning a new one
        """
        if n_bins is None:
            n_bins = settings.default_n_bins

        edges: Dict = {}
        amplitudes: Dict = {}
        pieces = []
        for key, sub in self._partitions():
            logger.debug(f"Discretizing EnergyProfile {key if key is not None else self.name}",
                         extra={"profile_type": self.profile_type})
            fit = fit_piecewise(sub.to_numpy(), n_bins=n_bins, hour_of_min=hour_of_min)
            edges[key] = fit.edges
            amplitudes[key] = fit.amplitudes
            pieces.append(pd.Series(fit.fitted, index=sub.index, name=sub.name))

        result = pd.concat(pieces) if pieces else self._series.copy()
        if self.is_partitioned:
            bin_edges = pd.DataFrame.from_dict(edges, orient="index")
            bin_scaling_factors = pd.DataFrame.from_dict(amplitudes, orient="index")
            bin_edges.index.name = bin_scaling_factors.index.name = self._series.index.names[0]
        else:
            bin_edges = pd.Series(edges.get(None, []), dtype=float)
            bin_scaling_factors = pd.Series(amplitudes.get(None, []), dtype=float)

        return self._finish(
            self._new(result, bin_edges_=bin_edges, bin_scaling_factors_=bin_scaling_factors),
            inplace,
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @property
    def bin_edges(self):
        return self.bin_edges_

    @property
    def bin_scaling_factors(self):
        return self.bin_scaling_factors_

    @property
    def p_max(self):
        """Peak value (per archetype for partitioned profiles)."""
        if self.is_partitioned:
            return self._series.groupby(level=0, sort=False).max()
        return self._series.max()

    @property
    def time_at_min(self):
        """Index label of the minimum (per archetype for partitioned profiles)."""
        if self.is_partitioned:
            return self._series.groupby(level=0, sort=False).idxmin()
        return self._series.idxmin()

    @property
    def capacity_factor(self):
        """
        Mean divided by max of the values as constructed.

        Partitioned profiles return one factor per archetype.
        """
        if isinstance(self._raw.index, pd.MultiIndex):
            grouped = self._raw.groupby(level=0, sort=False)
            return grouped.mean() / grouped.max()
        return self._raw.mean() / self._raw.max()

    @property
    def monthly(self) -> "EnergyProfile":
        """
        Monthly means on a calendar starting January 1st of ``base_year``.
        """
        alias = to_offset_alias(self.frequency)

        def resample(sub: pd.Series) -> pd.Series:
            calendar = pd.date_range(start=f"{self.base_year}-01-01", periods=len(sub), freq=alias)
            return pd.Series(sub.to_numpy(), index=calendar).resample("MS").mean()

        if self.is_partitioned:
            monthly = pd.concat(
                {key: resample(sub) for key, sub in self._partitions()},
                names=[self._series.index.names[0], "Month"],
            )
        else:
            monthly = resample(self._series)
        monthly.name = self._series.name
        return EnergyProfile(
            monthly,
            frequency="Monthly",
            units=self.units,
            profile_type=self.profile_type,
            base_year=self.base_year,
        )
