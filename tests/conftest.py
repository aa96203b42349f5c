"""
Shared pytest fixtures: raw booking rows in the hotel_bookings.csv layout.
"""

import pytest


def make_raw(**overrides):
    """A valid raw booking row; keyword arguments replace fields."""
    raw = {
        'hotel': 'City Hotel',
        'is_canceled': 0,
        'lead_time': 42,
        'arrival_date_year': 2016,
        'arrival_date_month': 'July',
        'arrival_date_week_number': 27,
        'arrival_date_day_of_month': 15,
        'stays_in_weekend_nights': 1,
        'stays_in_week_nights': 2,
        'adults': 2,
        'children': 0.0,
        'babies': 0,
        'meal': 'BB',
        'country': 'PRT',
        'market_segment': 'Online TA',
        'distribution_channel': 'TA/TO',
        'is_repeated_guest': 0,
        'previous_cancellations': 0,
        'previous_bookings_not_canceled': 0,
        'reserved_room_type': 'A',
        'assigned_room_type': 'A',
        'booking_changes': 0,
        'deposit_type': 'No Deposit',
        'agent': 9.0,
        'company': None,
        'days_in_waiting_list': 0,
        'customer_type': 'Transient',
        'adr': 98.5,
        'required_car_parking_spaces': 0,
        'total_of_special_requests': 1,
        'reservation_status': 'Check-Out',
        'reservation_status_date': '2016-07-18',
    }
    raw.update(overrides)
    return raw


def make_canceled(status_date='2016-06-01', **overrides):
    return make_raw(
        is_canceled=1,
        reservation_status='Canceled',
        reservation_status_date=status_date,
        **overrides
    )


@pytest.fixture
def raw_booking():
    return make_raw()


@pytest.fixture
def raw_batch():
    """Mixed batch: valid, canceled, invalid date, and schema failures."""
    return [
        make_raw(),
        make_canceled(),
        make_canceled(status_date='2016-07-20'),  # status after arrival
        make_raw(arrival_date_month='February', arrival_date_day_of_month=31),
        make_raw(lead_time='soon'),              # uncoercible
        {k: v for k, v in make_raw().items() if k != 'hotel'},  # missing field
        make_raw(customer_type='Corporate-Event', extra_column='ignored'),
    ]
