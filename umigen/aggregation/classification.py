"""Zone classification used as the grouping key of the zone aggregators."""

from typing import Callable, Hashable
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CORE = "Core"
PERIMETER = "Perimeter"

ZONE_NAME_COLUMN = ("Zone", "Zone Name")
EXTERIOR_WALL_COLUMN = ("Zone", "Exterior Gross Wall Area {m2}")

# Maps one joined zone row to a zone-type label
ZoneClassifier = Callable[[pd.Series], Hashable]


def iscore(row: pd.Series) -> str:
    """
    Label a zone 'Core' or 'Perimeter'.

    A zone is core when its name contains "core" (any case) or when it has
    no exterior wall area.
    """
    name = row.get(ZONE_NAME_COLUMN, "")
    wall_area = pd.to_numeric(row.get(EXTERIOR_WALL_COLUMN, np.nan), errors="coerce")
    if "core" in str(name).lower() or wall_area == 0:
        return CORE
    return PERIMETER


def classify(joined: pd.DataFrame, classifier: ZoneClassifier = iscore) -> pd.Series:
    """Apply ``classifier`` to every row of a joined zone frame."""
    if joined.empty:
        return pd.Series([], index=joined.index, dtype=object)
    return joined.apply(classifier, axis=1)
