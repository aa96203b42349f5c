"""
Unit Tests for Derived Fields

Tests cover:
- Arrival date composition
- Cancellation lead time (zero, positive, negative, round trip)
- Season and weekday mapping
- DataFrame export
"""

from datetime import date, timedelta

import pytest

from booking_eda.derived_fields import (
    DerivedFieldComputer,
    compose_arrival_date,
    derive_fields,
    season_of,
    weekday_of,
)
from booking_eda.exceptions import DateCompositionError
from booking_eda.schema import SchemaNormalizer
from conftest import make_canceled, make_raw


def booking(**overrides):
    return SchemaNormalizer().normalize_record(make_raw(**overrides))


def canceled(status_date, **overrides):
    return SchemaNormalizer().normalize_record(make_canceled(status_date, **overrides))


class TestArrivalDate:
    """Tests for arrival date composition."""

    def test_compose(self):
        assert compose_arrival_date(booking()) == date(2016, 7, 15)

    def test_invalid_date_raises(self):
        b = booking(arrival_date_month='February', arrival_date_day_of_month=31)
        with pytest.raises(DateCompositionError) as exc:
            compose_arrival_date(b)
        assert exc.value.month == 'February'
        assert exc.value.day == 31

    def test_leap_day(self):
        b = booking(arrival_date_year=2016, arrival_date_month='February',
                    arrival_date_day_of_month=29)
        assert compose_arrival_date(b) == date(2016, 2, 29)

    def test_invalid_date_keeps_record(self):
        record = DerivedFieldComputer().derive(
            booking(arrival_date_month='April', arrival_date_day_of_month=31)
        )
        assert not record.has_arrival_date
        assert record.customer_type == 'Transient'
        assert record.season == 'spring'
        with pytest.raises(DateCompositionError):
            record.arrival_date


class TestCancellationLeadTime:
    """Tests for cancellation lead time."""

    def test_not_canceled_is_zero(self):
        record = DerivedFieldComputer().derive(booking())
        assert record.cancellation_lead_time == 0

    def test_not_canceled_with_invalid_date_is_zero(self):
        record = DerivedFieldComputer().derive(
            booking(arrival_date_month='February', arrival_date_day_of_month=30)
        )
        assert record.cancellation_lead_time == 0

    def test_canceled_exact_days(self):
        record = DerivedFieldComputer().derive(canceled('2016-06-01'))
        assert record.cancellation_lead_time == 44

    def test_status_after_arrival_is_negative(self):
        record = DerivedFieldComputer().derive(canceled('2016-07-20'))
        assert record.cancellation_lead_time == -5

    def test_canceled_with_invalid_date_raises(self):
        record = DerivedFieldComputer().derive(
            canceled('2016-01-10', arrival_date_month='February', arrival_date_day_of_month=31)
        )
        with pytest.raises(DateCompositionError):
            record.cancellation_lead_time

    @pytest.mark.parametrize('status_date', [
        '2014-10-17', '2015-12-31', '2016-02-29', '2016-07-15', '2016-09-01',
    ])
    def test_round_trip(self, status_date):
        record = DerivedFieldComputer().derive(canceled(status_date))
        rebuilt = record.arrival_date - timedelta(days=record.cancellation_lead_time)
        assert rebuilt == record.reservation_status_date


class TestSeasonAndWeekday:
    """Tests for season and weekday derivations."""

    @pytest.mark.parametrize('month,expected', [
        (1, 'winter'), (2, 'winter'), (12, 'winter'),
        (3, 'spring'), (5, 'spring'),
        (6, 'summer'), (7, 'summer'), (8, 'summer'),
        (9, 'fall'), (10, 'fall'), (11, 'fall'),
    ])
    def test_season(self, month, expected):
        assert season_of(month) == expected

    @pytest.mark.parametrize('month', [0, 13, -1])
    def test_season_outside_months(self, month):
        assert season_of(month) == 'unclassified'

    def test_weekday_of(self):
        assert weekday_of(date(2016, 7, 15)) == 'Friday'
        assert weekday_of(date(2016, 7, 18)) == 'Monday'

    def test_weekday_by_date_field(self):
        record = DerivedFieldComputer().derive(booking())
        assert record.weekday('arrival_date') == 'Friday'
        assert record.weekday('reservation_status_date') == 'Monday'

    def test_unknown_date_field(self):
        record = DerivedFieldComputer().derive(booking())
        with pytest.raises(ValueError):
            record.weekday('booking_date')


class TestTransform:
    """Tests for batch derivation and export."""

    def test_inputs_untouched(self):
        bookings = [booking(), canceled('2016-06-01')]
        records = derive_fields(bookings)

        assert [r.booking for r in records] == bookings
        assert records[1].cancellation_lead_time == 44

    def test_to_frame(self):
        computer = DerivedFieldComputer()
        records = computer.transform([
            booking(),
            canceled('2016-06-01'),
            canceled('2016-01-10', arrival_date_month='February', arrival_date_day_of_month=31),
        ])
        df = computer.to_frame(records)

        assert list(df.columns) == computer.get_feature_columns()
        assert len(df) == 3
        assert df['cancellation_lead_time'].iloc[0] == 0
        assert df['cancellation_lead_time'].iloc[1] == 44
        assert df['cancellation_lead_time'].isna().iloc[2]
        assert df['arrival_date'].isna().iloc[2]
        assert df['arrival_weekday'].iloc[0] == 'Friday'
