"""
Load profile engine.

Usage:
    from umigen.profiles import EnergyProfile

    ldc = EnergyProfile(values, frequency="Hourly", units="J", is_sorted=True)
    print(ldc.capacity_factor)
"""

from .energy_profile import EnergyProfile, to_offset_alias, FREQUENCY_ALIASES
from .discretization import PiecewiseFit, piecewise, rmse, fit_piecewise

__all__ = [
    "EnergyProfile",
    "to_offset_alias",
    "FREQUENCY_ALIASES",
    "PiecewiseFit",
    "piecewise",
    "rmse",
    "fit_piecewise",
]
