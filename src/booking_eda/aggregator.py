"""
Grouped Aggregation of Booking Records

This module builds Summary Tables: mappings from a tuple of grouping-key
values to an aggregate record {count, value}. Supported modes:
1. count: number of records per group
2. rate: fraction of records in the group satisfying a predicate
3. row_percentage: two-way cross-tabulation, percentages within each
   value of the first key
4. mean: average of a numeric attribute per group

Empty groups never produce a misleading 0.0; their value is NO_DATA.
Records whose key extraction raises DateCompositionError are excluded
from that table only and counted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .exceptions import DateCompositionError, EmptyGroupError

logger = logging.getLogger(__name__)


class _NoData:
    """Marker for an aggregate that is undefined because its group is empty."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'NO_DATA'

    def __reduce__(self):
        return (_NoData, ())


NO_DATA = _NoData()

Value = Union[float, _NoData, None]

ORDERINGS = ('count', 'natural', 'value')


@dataclass(frozen=True)
class GroupKey:
    """
    A named grouping-key extractor.

    Attributes:
        name: Column name of the key in the output table
        extract: Function record -> key value
        domain: Natural order of the key values, if any (months, weekdays,
            seasons, bucket labels). Values outside the domain sort last.
    """
    name: str
    extract: Callable[[Any], Any]
    domain: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        if self.domain is not None:
            object.__setattr__(self, 'domain', tuple(self.domain))

    def __call__(self, record: Any) -> Any:
        return self.extract(record)


def field_key(name: str, domain: Optional[Sequence[Any]] = None, missing: Any = 'missing') -> GroupKey:
    """Group by a record attribute; None becomes the `missing` label."""
    def extract(record):
        value = getattr(record, name)
        return missing if value is None else value
    return GroupKey(name, extract, domain)


@dataclass(frozen=True)
class AggregateRecord:
    """Aggregate for one group."""
    count: int
    value: Value = None

    @property
    def has_data(self) -> bool:
        return self.value is not NO_DATA


@dataclass
class SummaryTable:
    """
    Result of a grouped aggregation.

    Attributes:
        keys: Grouping keys, in grouping order
        mode: 'count', 'rate', 'row_percentage' or 'mean'
        rows: Key tuple -> AggregateRecord
        excluded: Records left out because a key could not be computed
        excluded_rows: Sample of row positions of the excluded records
    """
    keys: Tuple[GroupKey, ...]
    mode: str
    rows: Dict[tuple, AggregateRecord] = field(default_factory=dict)
    excluded: int = 0
    excluded_rows: List[int] = field(default_factory=list)

    @property
    def key_names(self) -> List[str]:
        return [k.name for k in self.keys]

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, key) -> AggregateRecord:
        return self.rows[_as_tuple(key)]

    def __iter__(self):
        return iter(self.rows)

    def items(self):
        return self.rows.items()

    def value_of(self, key) -> Value:
        """Value of a group; NO_DATA for an empty or absent group."""
        record = self.rows.get(_as_tuple(key))
        return NO_DATA if record is None else record.value

    def require_value(self, key) -> float:
        """
        Value of a group, raising if the group has no members.

        Raises:
            EmptyGroupError: If the group is absent or empty
        """
        key = _as_tuple(key)
        record = self.rows.get(key)
        if record is None or record.count == 0 or record.value is NO_DATA:
            raise EmptyGroupError(key)
        return record.value

    def ordered(self, order: str) -> List[Tuple[tuple, AggregateRecord]]:
        """
        Rows sorted for display.

        Args:
            order: 'count' for descending count, 'natural' for the keys'
                domain order, 'value' for descending value (NO_DATA last)

        Returns:
            List of (key tuple, AggregateRecord)
        """
        if order not in ORDERINGS:
            raise ValueError(f"order must be one of: {list(ORDERINGS)}")

        items = list(self.rows.items())
        tiebreak = lambda item: tuple(str(v) for v in item[0])
        if order == 'count':
            return sorted(items, key=lambda item: (-item[1].count, tiebreak(item)))
        if order == 'value':
            return sorted(items, key=lambda item: (
                item[1].value is NO_DATA,
                -item[1].value if item[1].value is not NO_DATA else 0.0,
                -item[1].count,
                tiebreak(item)
            ))
        return sorted(items, key=lambda item: (self._natural_position(item[0]), tiebreak(item)))

    def _natural_position(self, key: tuple) -> tuple:
        position = []
        for group_key, value in zip(self.keys, key):
            if group_key.domain is not None and value in group_key.domain:
                position.append((0, group_key.domain.index(value), ''))
            elif group_key.domain is None and isinstance(value, (int, float, np.number)):
                position.append((0, value, ''))
            else:
                position.append((1, 0, str(value)))
        return tuple(position)

    def to_frame(self, order: str) -> pd.DataFrame:
        """
        Table as a DataFrame with columns <key names>, count, value, has_data.

        NO_DATA values become NaN with has_data=False.
        """
        records = []
        for key, agg in self.ordered(order):
            row = dict(zip(self.key_names, key))
            row['count'] = agg.count
            row['value'] = np.nan if agg.value is NO_DATA or agg.value is None else float(agg.value)
            row['has_data'] = agg.has_data and agg.value is not None
            records.append(row)
        return pd.DataFrame(records, columns=self.key_names + ['count', 'value', 'has_data'])


def _as_tuple(key) -> tuple:
    return key if isinstance(key, tuple) else (key,)


class GroupedAggregator:
    """
    Computes Summary Tables over a collection of records.

    The aggregator holds only the grouping keys; records are passed to
    every call and never modified.

    Attributes:
        keys (tuple): GroupKey extractors, in grouping order
        include_empty (bool): Emit every combination of declared domains,
            including groups with no records
    """

    def __init__(self, *keys: GroupKey, include_empty: bool = False):
        if not keys:
            raise ValueError("At least one grouping key is required")
        self.keys = tuple(keys)
        self.include_empty = include_empty

    def _group(self, records: Iterable[Any]) -> Tuple[Dict[tuple, List[Any]], int, List[int]]:
        groups: Dict[tuple, List[Any]] = {}
        if self.include_empty and all(k.domain is not None for k in self.keys):
            for combo in _product([k.domain for k in self.keys]):
                groups[combo] = []

        excluded = 0
        excluded_rows: List[int] = []
        for record in records:
            try:
                key = tuple(k(record) for k in self.keys)
            except DateCompositionError as e:
                excluded += 1
                if len(excluded_rows) < 10:
                    excluded_rows.append(e.row)
                continue
            groups.setdefault(key, []).append(record)

        if excluded:
            logger.debug(
                "Excluded %d records with invalid dates from grouping by %s",
                excluded, [k.name for k in self.keys]
            )
        return groups, excluded, excluded_rows

    def _table(self, mode: str, excluded: int, excluded_rows: List[int]) -> SummaryTable:
        return SummaryTable(
            keys=self.keys, mode=mode, excluded=excluded, excluded_rows=excluded_rows
        )

    def count(self, records: Iterable[Any]) -> SummaryTable:
        """Number of records per group."""
        groups, excluded, excluded_rows = self._group(records)
        table = self._table('count', excluded, excluded_rows)
        for key, members in groups.items():
            table.rows[key] = AggregateRecord(count=len(members), value=float(len(members)))
        return table

    def rate(self, records: Iterable[Any], predicate: Callable[[Any], bool]) -> SummaryTable:
        """
        Fraction of records per group for which `predicate` holds.

        Empty groups get NO_DATA instead of 0.0.
        """
        groups, excluded, excluded_rows = self._group(records)
        table = self._table('rate', excluded, excluded_rows)
        for key, members in groups.items():
            if not members:
                logger.debug("Group %r is empty; rate undefined", key)
                table.rows[key] = AggregateRecord(count=0, value=NO_DATA)
                continue
            hits = sum(1 for r in members if predicate(r))
            table.rows[key] = AggregateRecord(count=len(members), value=hits / len(members))
        return table

    def mean(self, records: Iterable[Any], value: Callable[[Any], Optional[float]]) -> SummaryTable:
        """
        Average of `value` per group, ignoring None values.

        Groups without any value get NO_DATA.
        """
        groups, excluded, excluded_rows = self._group(records)
        table = self._table('mean', excluded, excluded_rows)
        for key, members in groups.items():
            values = [v for v in (value(r) for r in members) if v is not None]
            table.rows[key] = AggregateRecord(
                count=len(members),
                value=float(np.mean(values)) if values else NO_DATA
            )
        return table

    def row_percentage(self, records: Iterable[Any]) -> SummaryTable:
        """
        Two-way cross-tabulation normalized within the first key.

        For each value of the first key, the percentages across all
        values of the second key sum to 100.

        Raises:
            ValueError: If the aggregator does not have exactly two keys
        """
        if len(self.keys) != 2:
            raise ValueError("row_percentage requires exactly two grouping keys")

        groups, excluded, excluded_rows = self._group(records)
        table = self._table('row_percentage', excluded, excluded_rows)

        totals: Dict[Any, int] = {}
        for (first, _), members in groups.items():
            totals[first] = totals.get(first, 0) + len(members)

        for key, members in groups.items():
            total = totals[key[0]]
            if total == 0:
                table.rows[key] = AggregateRecord(count=0, value=NO_DATA)
            else:
                table.rows[key] = AggregateRecord(
                    count=len(members), value=100.0 * len(members) / total
                )
        return table


def _product(domains: Sequence[Sequence[Any]]) -> List[tuple]:
    combos: List[tuple] = [()]
    for domain in domains:
        combos = [c + (v,) for c in combos for v in domain]
    return combos


def is_canceled(record: Any) -> bool:
    return bool(record.is_canceled)
