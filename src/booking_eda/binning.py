"""
Binning of continuous booking attributes into ordered labelled buckets.

Each bucket is a half-open interval [lower, upper). Values outside every
bucket map to an explicit out-of-range label and missing values map to
an explicit missing label, so every input gets exactly one label.
"""

import math
from typing import Any, Iterable, List, Optional, Sequence

import numpy as np

OUT_OF_RANGE = 'out-of-range'
MISSING = 'missing'

_FLOAT_MAX = float(np.finfo(float).max)


class Binner:
    """
    Assigns numeric values to labelled half-open buckets.

    Attributes:
        boundaries (np.ndarray): Strictly ascending bucket edges
        labels (list): One label per bucket (len(boundaries) - 1)
        out_of_range_label (str): Label for values outside all buckets
        missing_label (str): Label for None / NaN
    """

    def __init__(
        self,
        boundaries: Sequence[float],
        labels: Optional[Sequence[str]] = None,
        out_of_range_label: str = OUT_OF_RANGE,
        missing_label: str = MISSING
    ):
        """
        Initialize the binner.

        Args:
            boundaries: Ascending bucket edges, at least two
            labels: Bucket labels; defaults to "lower-upper" strings
            out_of_range_label: Label for values outside the edges
            missing_label: Label for missing values

        Raises:
            ValueError: If boundaries are not strictly ascending or the
                number of labels does not match the number of buckets
        """
        edges = np.asarray(boundaries, dtype=float)
        if edges.ndim != 1 or len(edges) < 2:
            raise ValueError("At least two boundaries are required")
        if np.isnan(edges).any() or not np.all(np.diff(edges) > 0):
            raise ValueError(f"Boundaries must be strictly ascending: {list(boundaries)}")

        if labels is None:
            labels = [
                f"{_fmt(lo)}-{_fmt(hi)}" for lo, hi in zip(edges[:-1], edges[1:])
            ]
        labels = list(labels)
        if len(labels) != len(edges) - 1:
            raise ValueError(
                f"Expected {len(edges) - 1} labels for {len(edges)} boundaries, "
                f"got {len(labels)}"
            )
        reserved = {out_of_range_label, missing_label} & set(labels)
        if reserved:
            raise ValueError(f"Bucket labels clash with reserved labels: {reserved}")

        self.boundaries = edges
        self.labels = labels
        self.out_of_range_label = out_of_range_label
        self.missing_label = missing_label

    @property
    def domain(self) -> List[str]:
        """All labels in natural order, sentinels last."""
        return self.labels + [self.out_of_range_label, self.missing_label]

    def assign(self, value: Any) -> str:
        """
        Label for a single value.

        Never raises for numeric input and never returns None.
        """
        number = _to_number(value)
        if math.isnan(number):
            return self.missing_label
        if number < self.boundaries[0] or number >= self.boundaries[-1]:
            return self.out_of_range_label
        index = int(np.searchsorted(self.boundaries, number, side='right')) - 1
        return self.labels[index]

    def assign_many(self, values: Iterable[Any]) -> List[str]:
        """
        Vectorized labelling of many values.

        Args:
            values: Numbers; None and NaN are allowed

        Returns:
            List of labels, one per input value
        """
        numbers = np.array([_to_number(v) for v in values], dtype=float)

        labels = np.array(self.labels + [self.out_of_range_label, self.missing_label], dtype=object)
        index = np.searchsorted(self.boundaries, numbers, side='right') - 1
        out_of_range = (numbers < self.boundaries[0]) | (numbers >= self.boundaries[-1])
        index = np.where(out_of_range, len(self.labels), index)
        index = np.where(np.isnan(numbers), len(self.labels) + 1, index)
        return labels[index].tolist()

    def __call__(self, value: Any) -> str:
        return self.assign(value)

    def __repr__(self) -> str:
        return f"Binner(boundaries={self.boundaries.tolist()}, labels={self.labels})"


def _to_number(value: Any) -> float:
    """Float value; NaN when missing or not numeric, clamped to the float range on overflow."""
    if value is None:
        return math.nan
    try:
        return float(value)
    except OverflowError:
        return _FLOAT_MAX if value > 0 else -_FLOAT_MAX
    except (TypeError, ValueError):
        return math.nan


def _fmt(edge: float) -> str:
    if math.isinf(edge):
        return 'inf'
    return str(int(edge)) if float(edge).is_integer() else f"{edge:g}"


# Days between booking and arrival
LEAD_TIME_BOUNDARIES = [0, 8, 31, 91, 181, 366, math.inf]
LEAD_TIME_LABELS = ['0-7', '8-30', '31-90', '91-180', '181-365', '366+']

# Days between cancellation and arrival, canceled bookings only. Negative
# values are status dates recorded after the scheduled arrival.
CANCELLATION_LEAD_BOUNDARIES = [-math.inf, 0, 1, 8, 31, 91, 181, 366, math.inf]
CANCELLATION_LEAD_LABELS = [
    'after arrival', 'same day', '1-7', '8-30', '31-90', '91-180', '181-365', '366+'
]

ADR_BOUNDARIES = [0, 50, 100, 150, 200, 300, 600]
ADR_LABELS = ['0-49', '50-99', '100-149', '150-199', '200-299', '300-599']
