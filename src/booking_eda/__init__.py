"""
Hotel booking cancellation analysis.

Typed booking records, derived fields, binning and grouped aggregation
over the hotel_bookings.csv dataset.
"""

from .aggregator import NO_DATA, AggregateRecord, GroupedAggregator, GroupKey, SummaryTable, field_key
from .binning import MISSING, OUT_OF_RANGE, Binner
from .derived_fields import DerivedBooking, DerivedFieldComputer, season_of, weekday_of
from .exceptions import BookingDataError, DateCompositionError, EmptyGroupError, SchemaError
from .report import CancellationReport, ReportConfig, ReportResult
from .schema import Booking, NormalizationResult, SchemaNormalizer, UnrecognizedEnumValue

__version__ = "0.1.0"

__all__ = [
    'AggregateRecord', 'Binner', 'Booking', 'BookingDataError', 'CancellationReport',
    'DateCompositionError', 'DerivedBooking', 'DerivedFieldComputer', 'EmptyGroupError',
    'GroupKey', 'GroupedAggregator', 'MISSING', 'NO_DATA', 'NormalizationResult',
    'OUT_OF_RANGE', 'ReportConfig', 'ReportResult', 'SchemaError', 'SchemaNormalizer',
    'SummaryTable', 'UnrecognizedEnumValue', 'field_key', 'season_of', 'weekday_of',
]
