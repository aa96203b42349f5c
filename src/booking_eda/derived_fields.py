"""
Derived Fields for Booking Cancellation Analysis

This module computes fields that are not present verbatim in the raw
booking data:
- arrival_date: composed from day of month, month and year
- cancellation_lead_time: days between cancellation and scheduled arrival
- season: meteorological season of the arrival month
- weekday: weekday name of either the arrival or the status date

Records whose arrival date cannot be composed are kept; only the
date-dependent fields raise DateCompositionError when accessed.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .exceptions import DateCompositionError
from .schema import Booking

SEASONS = ['winter', 'spring', 'summer', 'fall']
UNCLASSIFIED = 'unclassified'

SEASON_BY_MONTH = {
    12: 'winter', 1: 'winter', 2: 'winter',
    3: 'spring', 4: 'spring', 5: 'spring',
    6: 'summer', 7: 'summer', 8: 'summer',
    9: 'fall', 10: 'fall', 11: 'fall',
}

WEEKDAYS = list(calendar.day_name)  # Monday .. Sunday

DATE_FIELDS = ('arrival_date', 'reservation_status_date')


def season_of(month: int) -> str:
    """
    Map a month number to its season.

    Args:
        month: Month number, 1-12

    Returns:
        One of 'winter', 'spring', 'summer', 'fall', or 'unclassified'
        for anything outside 1-12
    """
    return SEASON_BY_MONTH.get(month, UNCLASSIFIED)


def weekday_of(day: date) -> str:
    """ISO weekday name (Monday first) of a date."""
    return WEEKDAYS[day.isoweekday() - 1]


def compose_arrival_date(booking: Booking) -> date:
    """
    Combine the arrival day, month and year of a booking into a date.

    Raises:
        DateCompositionError: If the parts are not a valid calendar date
    """
    try:
        return date(
            booking.arrival_date_year,
            booking.arrival_date_month,
            booking.arrival_date_day_of_month
        )
    except (TypeError, ValueError):
        raise DateCompositionError(
            booking.arrival_date_year,
            booking.arrival_month_name,
            booking.arrival_date_day_of_month,
            row=booking.row
        )


@dataclass(frozen=True)
class DerivedBooking:
    """
    A booking together with its derived fields.

    Attributes of the underlying Booking are readable directly on this
    record (`record.customer_type`).

    Attributes:
        booking (Booking): The source record
        season (str): Season of the arrival month
        date_error (DateCompositionError): Set when arrival_date is invalid
    """
    booking: Booking
    season: str
    _arrival_date: Optional[date] = None
    date_error: Optional[DateCompositionError] = field(default=None, compare=False)

    def __getattr__(self, name):
        if name == 'booking':
            raise AttributeError(name)
        return getattr(self.booking, name)

    @property
    def has_arrival_date(self) -> bool:
        return self.date_error is None

    @property
    def arrival_date(self) -> date:
        if self.date_error is not None:
            raise self.date_error
        return self._arrival_date

    @property
    def cancellation_lead_time(self) -> int:
        """
        Whole days between the status date and the scheduled arrival.

        Zero for bookings that were not canceled. May be negative for
        canceled bookings whose status date falls after arrival.
        """
        if not self.booking.is_canceled:
            return 0
        return (self.arrival_date - self.booking.reservation_status_date).days

    def date_of(self, date_field: str) -> date:
        """Value of 'arrival_date' or 'reservation_status_date'."""
        if date_field == 'arrival_date':
            return self.arrival_date
        if date_field == 'reservation_status_date':
            return self.booking.reservation_status_date
        raise ValueError(f"date_field must be one of: {list(DATE_FIELDS)}")

    def weekday(self, date_field: str = 'arrival_date') -> str:
        return weekday_of(self.date_of(date_field))


class DerivedFieldComputer:
    """
    Computes derived fields for a collection of bookings.

    Input bookings are never modified; every call returns new records.
    """

    def derive(self, booking: Booking) -> DerivedBooking:
        """
        Compute derived fields for one booking.

        A DateCompositionError is stored on the record rather than raised,
        so the record remains available to aggregations that do not need
        the arrival date.
        """
        season = season_of(booking.arrival_date_month)
        try:
            arrival = compose_arrival_date(booking)
        except DateCompositionError as e:
            return DerivedBooking(booking=booking, season=season, date_error=e)
        return DerivedBooking(booking=booking, season=season, _arrival_date=arrival)

    def transform(self, bookings: Iterable[Booking]) -> List[DerivedBooking]:
        """
        Apply all derivations.

        Args:
            bookings: Typed Booking records

        Returns:
            List of DerivedBooking in input order
        """
        return [self.derive(b) for b in bookings]

    def to_frame(self, records: Iterable[DerivedBooking]) -> pd.DataFrame:
        """
        Flatten derived records into a DataFrame.

        Date-dependent columns are left empty (NaT / NA) for records
        with an invalid arrival date.
        """
        rows = []
        for record in records:
            booking = record.booking
            arrival = record._arrival_date
            lead = None
            if arrival is not None or not booking.is_canceled:
                lead = record.cancellation_lead_time
            rows.append({
                'row': booking.row,
                'hotel': booking.hotel,
                'is_canceled': booking.is_canceled,
                'arrival_date': arrival,
                'reservation_status_date': booking.reservation_status_date,
                'cancellation_lead_time': lead,
                'season': record.season,
                'arrival_weekday': weekday_of(arrival) if arrival else None,
                'status_weekday': weekday_of(booking.reservation_status_date),
            })

        df = pd.DataFrame(rows, columns=self.get_feature_columns())
        df['arrival_date'] = pd.to_datetime(df['arrival_date'])
        df['reservation_status_date'] = pd.to_datetime(df['reservation_status_date'])
        df['cancellation_lead_time'] = df['cancellation_lead_time'].astype('Int64')
        return df

    def get_feature_columns(self) -> List[str]:
        return [
            'row', 'hotel', 'is_canceled',
            'arrival_date', 'reservation_status_date',
            'cancellation_lead_time', 'season',
            'arrival_weekday', 'status_weekday',
        ]


def derive_fields(bookings: Iterable[Booking]) -> List[DerivedBooking]:
    """Convenience wrapper around DerivedFieldComputer.transform."""
    return DerivedFieldComputer().transform(bookings)
