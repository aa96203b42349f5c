"""
Cancellation Report

Runs the full pipeline (normalize -> derive -> bin -> aggregate) and
produces the named summary tables of the booking cancellation
exploration. The date field driving the temporal tables and an optional
single-year filter are configuration, not separate code paths.

Example Usage:
-------------
```python
from booking_eda.loader import load_raw_records
from booking_eda.report import CancellationReport, ReportConfig

report = CancellationReport(ReportConfig(date_field='reservation_status_date', year=2016))
result = report.build(load_raw_records('data/hotel_bookings.csv'))
print(result.frame('monthly_cancellations'))
```
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .aggregator import GroupKey, GroupedAggregator, SummaryTable, field_key, is_canceled
from .binning import (
    ADR_BOUNDARIES, ADR_LABELS, CANCELLATION_LEAD_BOUNDARIES, CANCELLATION_LEAD_LABELS,
    LEAD_TIME_BOUNDARIES, LEAD_TIME_LABELS, Binner
)
from .derived_fields import (
    DATE_FIELDS, SEASONS, UNCLASSIFIED, WEEKDAYS,
    DerivedBooking, DerivedFieldComputer, season_of
)
from .schema import ENUM_DOMAINS, MONTH_NAMES, Booking, NormalizationResult, SchemaNormalizer

logger = logging.getLogger(__name__)

CANCELED_DOMAIN = (False, True)

# How each table is ordered when rendered
TABLE_ORDERING = {
    'reservation_status': 'count',
    'hotel_cancellation': 'natural',
    'customer_type_cancellation': 'count',
    'deposit_type_cancellation': 'count',
    'market_segment_cancellation': 'count',
    'distribution_channel_cancellation': 'count',
    'children_cancellation_rate': 'natural',
    'special_requests_cancellation_rate': 'natural',
    'parking_cancellation_rate': 'natural',
    'lead_time_cancellation_rate': 'natural',
    'country_cancellation_rate': 'value',
    'cancellation_lead_time': 'natural',
    'monthly_cancellations': 'natural',
    'monthly_cancellation_rate': 'natural',
    'weekday_cancellations': 'natural',
    'season_cancellations': 'natural',
    'monthly_adr': 'natural',
    'adr_cancellation_rate': 'natural',
}


@dataclass
class ReportConfig:
    """
    Configuration for the cancellation report.

    Attributes:
        date_field: Date driving the temporal tables, 'arrival_date' or
            'reservation_status_date'
        year: Restrict temporal tables to this year of the date field
        lead_time_boundaries / lead_time_labels: Lead-time buckets
        cancellation_lead_boundaries / cancellation_lead_labels: Buckets
            for days between cancellation and arrival
        adr_boundaries / adr_labels: Average daily rate buckets
        min_country_bookings: Countries with fewer bookings are left out
            of the country table
        top_countries: Keep this many countries (by booking count)
        error_sample_size: Failing records kept for the report
        ordering: Per-table ordering overrides
    """
    date_field: str = 'arrival_date'
    year: Optional[int] = None
    lead_time_boundaries: Sequence[float] = field(default_factory=lambda: list(LEAD_TIME_BOUNDARIES))
    lead_time_labels: Sequence[str] = field(default_factory=lambda: list(LEAD_TIME_LABELS))
    cancellation_lead_boundaries: Sequence[float] = field(
        default_factory=lambda: list(CANCELLATION_LEAD_BOUNDARIES)
    )
    cancellation_lead_labels: Sequence[str] = field(
        default_factory=lambda: list(CANCELLATION_LEAD_LABELS)
    )
    adr_boundaries: Sequence[float] = field(default_factory=lambda: list(ADR_BOUNDARIES))
    adr_labels: Sequence[str] = field(default_factory=lambda: list(ADR_LABELS))
    min_country_bookings: int = 100
    top_countries: int = 20
    error_sample_size: int = 5
    ordering: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.date_field not in DATE_FIELDS:
            raise ValueError(f"date_field must be one of: {list(DATE_FIELDS)}")

    def ordering_for(self, table: str) -> str:
        return self.ordering.get(table, TABLE_ORDERING[table])


@dataclass
class ReportResult:
    """
    Tables produced by a report run.

    Attributes:
        normalization: Schema normalization outcome (excluded records etc.)
        tables: Table name -> SummaryTable
        orderings: Table name -> ordering used for rendering
        config: The configuration used
    """
    normalization: NormalizationResult
    tables: Dict[str, SummaryTable]
    orderings: Dict[str, str]
    config: ReportConfig

    @property
    def table_names(self) -> List[str]:
        return list(self.tables)

    def frame(self, name: str) -> pd.DataFrame:
        """Table `name` as a DataFrame in its configured order."""
        return self.tables[name].to_frame(self.orderings[name])

    def summary(self) -> Dict[str, Any]:
        summary = self.normalization.summary()
        summary['sample_errors'] = [
            str(e.error) for e in self.normalization.error_sample(self.config.error_sample_size)
        ]
        summary['date_field'] = self.config.date_field
        summary['year'] = self.config.year
        summary['excluded_by_table'] = {
            name: table.excluded for name, table in self.tables.items() if table.excluded
        }
        return summary


# ============================================================================
# GROUPING KEYS
# ============================================================================

def month_key(date_field: str) -> GroupKey:
    """Month name of the chosen date field."""
    if date_field == 'arrival_date':
        extract = lambda r: MONTH_NAMES[r.arrival_date_month - 1]
    else:
        extract = lambda r: MONTH_NAMES[r.date_of(date_field).month - 1]
    return GroupKey('month', extract, MONTH_NAMES)


def weekday_key(date_field: str) -> GroupKey:
    return GroupKey('weekday', lambda r: r.weekday(date_field), WEEKDAYS)


def season_key(date_field: str) -> GroupKey:
    if date_field == 'arrival_date':
        extract = lambda r: r.season
    else:
        extract = lambda r: season_of(r.date_of(date_field).month)
    return GroupKey('season', extract, SEASONS + [UNCLASSIFIED])


def binned_key(name: str, binner: Binner, value) -> GroupKey:
    return GroupKey(name, lambda r: binner.assign(value(r)), binner.domain)


def enum_key(name: str) -> GroupKey:
    return field_key(name, ENUM_DOMAINS.get(name))


CANCELED_KEY = GroupKey('is_canceled', is_canceled, CANCELED_DOMAIN)


class CancellationReport:
    """
    Builds every summary table of the cancellation exploration.

    Attributes:
        config (ReportConfig): Report configuration
        normalizer (SchemaNormalizer): Raw record validation
        computer (DerivedFieldComputer): Derived field computation
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()
        self.normalizer = SchemaNormalizer()
        self.computer = DerivedFieldComputer()
        self.lead_time_binner = Binner(
            self.config.lead_time_boundaries, self.config.lead_time_labels
        )
        self.cancellation_lead_binner = Binner(
            self.config.cancellation_lead_boundaries, self.config.cancellation_lead_labels
        )
        self.adr_binner = Binner(self.config.adr_boundaries, self.config.adr_labels)

    def build(self, raw_records: Iterable[Mapping[str, Any]]) -> ReportResult:
        """
        Normalize raw records and compute all tables.

        Args:
            raw_records: Field name -> value mappings, e.g. from
                loader.load_raw_records

        Returns:
            ReportResult
        """
        normalization = self.normalizer.normalize(raw_records)
        return self.build_from_bookings(normalization.bookings, normalization)

    def build_from_bookings(
        self,
        bookings: Sequence[Booking],
        normalization: Optional[NormalizationResult] = None
    ) -> ReportResult:
        """Compute all tables from already typed bookings."""
        if normalization is None:
            normalization = NormalizationResult(bookings=list(bookings), total=len(bookings))

        records = self.computer.transform(bookings)
        tables: Dict[str, SummaryTable] = {}

        tables['reservation_status'] = GroupedAggregator(
            enum_key('reservation_status')
        ).count(records)

        for name in ('hotel', 'customer_type', 'deposit_type',
                     'market_segment', 'distribution_channel'):
            tables[f'{name}_cancellation'] = GroupedAggregator(
                enum_key(name), CANCELED_KEY
            ).row_percentage(records)

        tables['children_cancellation_rate'] = GroupedAggregator(
            field_key('children')
        ).rate(records, is_canceled)
        tables['special_requests_cancellation_rate'] = GroupedAggregator(
            field_key('total_of_special_requests')
        ).rate(records, is_canceled)
        tables['parking_cancellation_rate'] = GroupedAggregator(
            field_key('required_car_parking_spaces')
        ).rate(records, is_canceled)
        tables['lead_time_cancellation_rate'] = GroupedAggregator(
            binned_key('lead_time_bucket', self.lead_time_binner, lambda r: r.lead_time),
            include_empty=True
        ).rate(records, is_canceled)

        tables['country_cancellation_rate'] = self.country_rates(records)

        canceled = [r for r in records if r.is_canceled]
        tables['cancellation_lead_time'] = GroupedAggregator(
            binned_key(
                'cancellation_lead_bucket',
                self.cancellation_lead_binner,
                lambda r: r.cancellation_lead_time
            ),
            include_empty=True
        ).count(canceled)

        tables.update(self.temporal_tables(records))

        tables['monthly_adr'] = GroupedAggregator(
            enum_key('hotel'), month_key('arrival_date')
        ).mean([r for r in records if not r.is_canceled], lambda r: r.adr)

        adr_buckets = dict(zip(
            map(id, records), self.adr_binner.assign_many(r.adr for r in records)
        ))
        tables['adr_cancellation_rate'] = GroupedAggregator(
            GroupKey('adr_bucket', lambda r: adr_buckets[id(r)], self.adr_binner.domain),
            include_empty=True
        ).rate(records, is_canceled)

        orderings = {name: self.config.ordering_for(name) for name in tables}
        logger.info(
            "Built %d tables from %d bookings (%d excluded)",
            len(tables), len(records), normalization.excluded_count
        )
        return ReportResult(
            normalization=normalization,
            tables=tables,
            orderings=orderings,
            config=self.config
        )

    def in_year(self, records: Iterable[DerivedBooking]) -> List[DerivedBooking]:
        """
        Records whose configured date falls in the configured year.

        Records whose arrival date cannot be composed are kept when
        filtering on arrival year, since the year itself is known.
        """
        records = list(records)
        year = self.config.year
        if year is None:
            return records
        if self.config.date_field == 'arrival_date':
            return [r for r in records if r.arrival_date_year == year]
        return [r for r in records if r.reservation_status_date.year == year]

    def temporal_tables(self, records: Sequence[DerivedBooking]) -> Dict[str, SummaryTable]:
        """Cancellations by month, weekday and season of the configured date."""
        date_field = self.config.date_field
        scoped = self.in_year(records)
        canceled = [r for r in scoped if r.is_canceled]

        return {
            'monthly_cancellations': GroupedAggregator(
                month_key(date_field), include_empty=True
            ).count(canceled),
            'monthly_cancellation_rate': GroupedAggregator(
                month_key(date_field), include_empty=True
            ).rate(scoped, is_canceled),
            'weekday_cancellations': GroupedAggregator(
                weekday_key(date_field), include_empty=True
            ).count(canceled),
            'season_cancellations': GroupedAggregator(
                season_key(date_field)
            ).count(canceled),
        }

    def country_rates(self, records: Sequence[DerivedBooking]) -> SummaryTable:
        """
        Cancellation rate per country, for the busiest countries.

        Countries below `min_country_bookings` are dropped before taking
        the `top_countries` largest by booking count.
        """
        table = GroupedAggregator(field_key('country')).rate(records, is_canceled)
        kept = [
            (key, agg) for key, agg in table.ordered('count')
            if agg.count >= self.config.min_country_bookings
        ][:self.config.top_countries]
        logger.debug("Kept %d of %d countries", len(kept), len(table))
        return SummaryTable(
            keys=table.keys,
            mode=table.mode,
            rows=dict(kept),
            excluded=table.excluded,
            excluded_rows=table.excluded_rows
        )
