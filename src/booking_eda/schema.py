"""
Schema Normalization for Hotel Booking Records

This module turns raw field mappings (one per CSV row) into typed,
immutable Booking records:
- Required fields are checked and coerced to their declared types
- Optional fields fall back to None when missing
- Enumerated fields are validated against known value sets
- Unknown enum values are kept verbatim and flagged on the record
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import SchemaError

logger = logging.getLogger(__name__)


MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]
MONTH_NUMBERS = {name.lower(): i + 1 for i, name in enumerate(MONTH_NAMES)}

# Known values per categorical field, as they appear in hotel_bookings.csv
ENUM_DOMAINS: Dict[str, Tuple[str, ...]] = {
    'hotel': ('Resort Hotel', 'City Hotel'),
    'customer_type': ('Contract', 'Group', 'Transient', 'Transient-Party'),
    'deposit_type': ('No Deposit', 'Non Refund', 'Refundable'),
    'distribution_channel': ('Corporate', 'Direct', 'GDS', 'TA/TO', 'Undefined'),
    'market_segment': (
        'Aviation', 'Complementary', 'Corporate', 'Direct', 'Groups',
        'Offline TA/TO', 'Online TA', 'Undefined'
    ),
    'reservation_status': ('Check-Out', 'Canceled', 'No-Show'),
    'meal': ('BB', 'FB', 'HB', 'SC', 'Undefined'),
}

_TRUE_STRINGS = {'1', 'true', 't', 'yes', 'y'}
_FALSE_STRINGS = {'0', 'false', 'f', 'no', 'n'}


@dataclass(frozen=True)
class UnrecognizedEnumValue:
    """A categorical value outside the known domain of its field."""
    field: str
    value: str


@dataclass(frozen=True)
class Booking:
    """
    One typed booking record.

    Bookings have no natural key; `row` is the ordinal position of the
    record in the input. Instances are frozen and never mutated by any
    downstream computation.
    """
    row: int
    hotel: str
    is_canceled: bool
    lead_time: int
    arrival_date_year: int
    arrival_date_month: int
    arrival_date_day_of_month: int
    reservation_status: str
    reservation_status_date: date
    customer_type: str
    distribution_channel: str
    market_segment: str
    deposit_type: str
    total_of_special_requests: int
    required_car_parking_spaces: int
    adr: float
    country: Optional[str] = None
    children: Optional[int] = None
    meal: Optional[str] = None
    arrival_date_week_number: Optional[int] = None
    stays_in_weekend_nights: Optional[int] = None
    stays_in_week_nights: Optional[int] = None
    adults: Optional[int] = None
    babies: Optional[int] = None
    is_repeated_guest: Optional[bool] = None
    previous_cancellations: Optional[int] = None
    previous_bookings_not_canceled: Optional[int] = None
    reserved_room_type: Optional[str] = None
    assigned_room_type: Optional[str] = None
    booking_changes: Optional[int] = None
    agent: Optional[str] = None
    company: Optional[str] = None
    days_in_waiting_list: Optional[int] = None
    flags: Tuple[UnrecognizedEnumValue, ...] = ()

    @property
    def arrival_month_name(self) -> str:
        return MONTH_NAMES[self.arrival_date_month - 1]

    @property
    def is_flagged(self) -> bool:
        return bool(self.flags)


# ============================================================================
# FIELD COERCION
# ============================================================================

def is_missing(value: Any) -> bool:
    """True for None, NaN/NaT and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == '' or value.strip().upper() in ('NULL', 'NAN')
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_bool(name: str, value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)) and value in (0, 1):
        return bool(value)
    if isinstance(value, (float, np.floating)) and value in (0.0, 1.0):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise SchemaError(name, f"expected a boolean flag, got {value!r}", value)


def to_int(name: str, value: Any, non_negative: bool = True) -> int:
    """
    Coerce a value to int.

    Accepts ints, integral floats (pandas stores nullable integer columns
    as float64) and numeric strings such as "3" or "3.0".
    """
    if isinstance(value, (bool, np.bool_)):
        raise SchemaError(name, f"expected an integer, got {value!r}", value)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise SchemaError(name, f"expected an integer, got {value!r}", value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise SchemaError(name, f"expected an integer, got {value!r}", value)
    if not math.isfinite(number) or not number.is_integer():
        raise SchemaError(name, f"expected an integer, got {value!r}", value)
    if non_negative and number < 0:
        raise SchemaError(name, f"must be non-negative, got {value!r}", value)
    return int(number)


def to_float(name: str, value: Any, non_negative: bool = True) -> float:
    if isinstance(value, (bool, np.bool_)):
        raise SchemaError(name, f"expected a number, got {value!r}", value)
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        raise SchemaError(name, f"expected a number, got {value!r}", value)
    if not np.isfinite(number):
        raise SchemaError(name, f"expected a finite number, got {value!r}", value)
    if non_negative and number < 0:
        raise SchemaError(name, f"must be non-negative, got {value!r}", value)
    return number


def to_month(name: str, value: Any) -> int:
    """Month name ("July", case-insensitive) or month number 1..12."""
    if isinstance(value, str) and value.strip().lower() in MONTH_NUMBERS:
        return MONTH_NUMBERS[value.strip().lower()]
    try:
        month = to_int(name, value)
    except SchemaError:
        raise SchemaError(name, f"unknown month {value!r}", value)
    if not 1 <= month <= 12:
        raise SchemaError(name, f"month out of range: {value!r}", value)
    return month


def to_date(name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (bool, int, float, np.number, np.bool_)):
        # pandas would read a bare number as nanoseconds since the epoch
        raise SchemaError(name, f"expected a date, got {value!r}", value)
    try:
        parsed = pd.to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        raise SchemaError(name, f"expected a date, got {value!r}", value)
    if pd.isna(parsed):
        raise SchemaError(name, f"expected a date, got {value!r}", value)
    return parsed.date()


def to_str(name: str, value: Any) -> str:
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        # agent / company ids come back from pandas as 9.0
        return str(int(value))
    text = str(value).strip()
    if not text:
        raise SchemaError(name, "empty value", value)
    return text


_COERCERS = {
    'str': to_str,
    'int': to_int,
    'float': to_float,
    'bool': to_bool,
    'month': to_month,
    'date': to_date,
}

# field name -> (type, required)
BOOKING_FIELDS: Dict[str, Tuple[str, bool]] = {
    'hotel': ('str', True),
    'is_canceled': ('bool', True),
    'lead_time': ('int', True),
    'arrival_date_year': ('int', True),
    'arrival_date_month': ('month', True),
    'arrival_date_day_of_month': ('int', True),
    'reservation_status': ('str', True),
    'reservation_status_date': ('date', True),
    'customer_type': ('str', True),
    'distribution_channel': ('str', True),
    'market_segment': ('str', True),
    'deposit_type': ('str', True),
    'total_of_special_requests': ('int', True),
    'required_car_parking_spaces': ('int', True),
    'adr': ('float', True),
    'country': ('str', False),
    'children': ('int', False),
    'meal': ('str', False),
    'arrival_date_week_number': ('int', False),
    'stays_in_weekend_nights': ('int', False),
    'stays_in_week_nights': ('int', False),
    'adults': ('int', False),
    'babies': ('int', False),
    'is_repeated_guest': ('bool', False),
    'previous_cancellations': ('int', False),
    'previous_bookings_not_canceled': ('int', False),
    'reserved_room_type': ('str', False),
    'assigned_room_type': ('str', False),
    'booking_changes': ('int', False),
    'agent': ('str', False),
    'company': ('str', False),
    'days_in_waiting_list': ('int', False),
}

REQUIRED_FIELDS = [name for name, (_, required) in BOOKING_FIELDS.items() if required]


# ============================================================================
# NORMALIZER
# ============================================================================

@dataclass
class RecordError:
    """A raw record that was excluded, with the reason."""
    row: int
    error: SchemaError


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing a batch of raw records.

    Attributes:
        bookings: Successfully typed records, in input order
        errors: One entry per excluded record
        total: Number of raw records seen
    """
    bookings: List[Booking] = field(default_factory=list)
    errors: List[RecordError] = field(default_factory=list)
    total: int = 0

    @property
    def excluded_count(self) -> int:
        return len(self.errors)

    @property
    def flagged_count(self) -> int:
        """Number of bookings holding at least one unrecognized enum value."""
        return sum(1 for b in self.bookings if b.flags)

    def error_sample(self, n: int = 5) -> List[RecordError]:
        return self.errors[:n]

    def unrecognized_values(self) -> Dict[str, Dict[str, int]]:
        """Count of each unrecognized value, per field."""
        counts: Dict[str, Dict[str, int]] = {}
        for booking in self.bookings:
            for flag in booking.flags:
                per_field = counts.setdefault(flag.field, {})
                per_field[flag.value] = per_field.get(flag.value, 0) + 1
        return counts

    def summary(self) -> Dict[str, Any]:
        return {
            'total_records': self.total,
            'valid_records': len(self.bookings),
            'excluded_records': self.excluded_count,
            'flagged_records': self.flagged_count,
            'sample_errors': [str(e.error) for e in self.error_sample()],
        }


class SchemaNormalizer:
    """
    Validates and casts raw booking rows into Booking records.

    Unknown extra fields are ignored. A record that is missing a required
    field, or whose value cannot be coerced, raises SchemaError; in batch
    mode the record is excluded and the error collected.

    Attributes:
        enum_domains (dict): Allowed values per categorical field
    """

    def __init__(self, enum_domains: Optional[Mapping[str, Iterable[str]]] = None):
        """
        Initialize the normalizer.

        Args:
            enum_domains: Override the known value sets per field
        """
        domains = dict(ENUM_DOMAINS)
        if enum_domains:
            domains.update(enum_domains)
        self.enum_domains = {name: frozenset(values) for name, values in domains.items()}

    def normalize_record(self, raw: Mapping[str, Any], row: int = 0) -> Booking:
        """
        Convert one raw mapping into a Booking.

        Args:
            raw: Field name -> untyped value
            row: Ordinal position of the record in the input

        Returns:
            Typed Booking record

        Raises:
            SchemaError: If a required field is missing or uncoercible
        """
        values: Dict[str, Any] = {}
        for name, (kind, required) in BOOKING_FIELDS.items():
            value = raw.get(name)
            if is_missing(value):
                if required:
                    raise SchemaError(name, "required field is missing", row=row)
                values[name] = None
                continue
            try:
                values[name] = _COERCERS[kind](name, value)
            except SchemaError as e:
                e.row = row
                raise

        flags = tuple(
            UnrecognizedEnumValue(name, values[name])
            for name, allowed in self.enum_domains.items()
            if values.get(name) is not None and values[name] not in allowed
        )
        return Booking(row=row, flags=flags, **values)

    def normalize(self, records: Iterable[Mapping[str, Any]]) -> NormalizationResult:
        """
        Normalize a batch of raw records.

        Bad records never abort the batch; they are excluded and reported
        in the result.

        Args:
            records: Sequence of raw field mappings

        Returns:
            NormalizationResult with bookings and collected errors
        """
        result = NormalizationResult()
        for row, raw in enumerate(records):
            result.total += 1
            try:
                result.bookings.append(self.normalize_record(raw, row=row))
            except SchemaError as e:
                logger.debug("Excluding record: %s", e)
                result.errors.append(RecordError(row=row, error=e))

        if result.errors:
            logger.warning(
                "Excluded %d of %d records failing schema validation",
                result.excluded_count, result.total
            )
        if result.flagged_count:
            logger.info(
                "%d records hold unrecognized categorical values: %s",
                result.flagged_count, result.unrecognized_values()
            )
        return result


def normalize_bookings(records: Iterable[Mapping[str, Any]]) -> NormalizationResult:
    """Normalize raw records with the default enum domains."""
    return SchemaNormalizer().normalize(records)
