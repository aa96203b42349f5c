"""
Unit Tests for Schema Normalization

Tests cover:
- Field coercion (booleans, integers, months, dates)
- Required and optional fields
- Unrecognized enum values
- Batch normalization with collected errors
"""

from datetime import date

import numpy as np
import pytest

from booking_eda.exceptions import SchemaError
from booking_eda.schema import (
    Booking,
    SchemaNormalizer,
    UnrecognizedEnumValue,
    is_missing,
    normalize_bookings,
    to_bool,
    to_date,
    to_float,
    to_int,
    to_month,
)
from conftest import make_raw


class TestCoercion:
    """Tests for single-field coercion helpers."""

    @pytest.mark.parametrize('value', [1, '1', 'true', True, 1.0, np.int64(1)])
    def test_true_values(self, value):
        assert to_bool('is_canceled', value) is True

    @pytest.mark.parametrize('value', [0, '0', 'False', False, 0.0])
    def test_false_values(self, value):
        assert to_bool('is_canceled', value) is False

    def test_bad_bool(self):
        with pytest.raises(SchemaError):
            to_bool('is_canceled', 2)

    def test_int_from_float_and_string(self):
        assert to_int('children', 2.0) == 2
        assert to_int('lead_time', '14') == 14
        assert to_int('lead_time', '14.0') == 14

    @pytest.mark.parametrize('value', ['soon', 1.5, -3, float('inf'), True])
    def test_bad_int(self, value):
        with pytest.raises(SchemaError):
            to_int('lead_time', value)

    @pytest.mark.parametrize('value', [10 ** 400, -(10 ** 400)])
    def test_huge_int_rejected(self, value):
        with pytest.raises(SchemaError):
            to_int('lead_time', value, non_negative=False)
        with pytest.raises(SchemaError):
            to_float('adr', value, non_negative=False)

    def test_dates(self):
        assert to_date('reservation_status_date', '2016-07-18') == date(2016, 7, 18)
        assert to_date('reservation_status_date', date(2016, 7, 18)) == date(2016, 7, 18)

    @pytest.mark.parametrize('value', [20160718, 20160718.0, np.int64(20160718), True, 'someday'])
    def test_bad_date(self, value):
        with pytest.raises(SchemaError):
            to_date('reservation_status_date', value)

    def test_month_names_and_numbers(self):
        assert to_month('arrival_date_month', 'July') == 7
        assert to_month('arrival_date_month', 'february') == 2
        assert to_month('arrival_date_month', 12) == 12

    @pytest.mark.parametrize('value', ['Juli', 0, 13])
    def test_bad_month(self, value):
        with pytest.raises(SchemaError):
            to_month('arrival_date_month', value)

    def test_missing(self):
        assert is_missing(None)
        assert is_missing(float('nan'))
        assert is_missing('  ')
        assert is_missing('NULL')
        assert not is_missing('NA')  # Namibia
        assert not is_missing(0)


class TestNormalizeRecord:
    """Tests for SchemaNormalizer.normalize_record."""

    def test_valid_record(self, raw_booking):
        booking = SchemaNormalizer().normalize_record(raw_booking, row=3)

        assert isinstance(booking, Booking)
        assert booking.row == 3
        assert booking.is_canceled is False
        assert booking.arrival_date_month == 7
        assert booking.arrival_month_name == 'July'
        assert booking.reservation_status_date == date(2016, 7, 18)
        assert booking.children == 0
        assert booking.agent == '9'
        assert booking.company is None
        assert booking.flags == ()

    def test_extra_fields_ignored(self):
        booking = SchemaNormalizer().normalize_record(make_raw(unknown='x'))
        assert not hasattr(booking, 'unknown')

    def test_missing_required_field(self):
        raw = make_raw()
        del raw['reservation_status_date']

        with pytest.raises(SchemaError) as exc:
            SchemaNormalizer().normalize_record(raw, row=7)
        assert exc.value.field == 'reservation_status_date'
        assert exc.value.row == 7

    def test_uncoercible_lead_time(self):
        with pytest.raises(SchemaError) as exc:
            SchemaNormalizer().normalize_record(make_raw(lead_time='abc'))
        assert exc.value.field == 'lead_time'

    def test_negative_adr_rejected(self):
        with pytest.raises(SchemaError):
            SchemaNormalizer().normalize_record(make_raw(adr=-6.38))

    def test_missing_optional_fields(self):
        booking = SchemaNormalizer().normalize_record(
            make_raw(country=float('nan'), children=None)
        )
        assert booking.country is None
        assert booking.children is None

    def test_unrecognized_enum_is_flagged_not_failed(self):
        booking = SchemaNormalizer().normalize_record(
            make_raw(deposit_type='Voucher')
        )
        assert booking.deposit_type == 'Voucher'
        assert booking.flags == (UnrecognizedEnumValue('deposit_type', 'Voucher'),)
        assert booking.is_flagged

    def test_custom_enum_domain(self):
        normalizer = SchemaNormalizer({'deposit_type': ['Voucher']})
        booking = normalizer.normalize_record(make_raw(deposit_type='Voucher'))
        assert booking.flags == ()

    def test_booking_is_immutable(self, raw_booking):
        booking = SchemaNormalizer().normalize_record(raw_booking)
        with pytest.raises(AttributeError):
            booking.lead_time = 0


class TestNormalizeBatch:
    """Tests for batch normalization."""

    def test_bad_records_do_not_abort(self, raw_batch):
        result = normalize_bookings(raw_batch)

        assert result.total == 7
        assert len(result.bookings) == 5
        assert result.excluded_count == 2
        assert [e.row for e in result.errors] == [4, 5]
        assert result.errors[1].error.field == 'hotel'

    def test_rows_keep_input_position(self, raw_batch):
        result = normalize_bookings(raw_batch)
        assert [b.row for b in result.bookings] == [0, 1, 2, 3, 6]

    def test_summary(self, raw_batch):
        summary = normalize_bookings(raw_batch).summary()

        assert summary['total_records'] == 7
        assert summary['valid_records'] == 5
        assert summary['excluded_records'] == 2
        assert summary['flagged_records'] == 1
        assert 'lead_time' in summary['sample_errors'][0]

    def test_unrecognized_value_counts(self, raw_batch):
        result = normalize_bookings(raw_batch)
        assert result.unrecognized_values() == {'customer_type': {'Corporate-Event': 1}}

    def test_empty_input(self):
        result = normalize_bookings([])
        assert result.bookings == []
        assert result.excluded_count == 0

    def test_huge_lead_time_excluded(self):
        result = normalize_bookings([make_raw(), make_raw(lead_time=10 ** 400)])

        assert len(result.bookings) == 1
        assert result.excluded_count == 1
        assert result.errors[0].error.field == 'lead_time'
