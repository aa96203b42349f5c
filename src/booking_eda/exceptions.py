"""
Error kinds raised while normalizing and aggregating booking records.

All record-level errors carry the ordinal row position of the offending
record so that batch reports can point back at the input.
"""

from typing import Any, Optional


class BookingDataError(Exception):
    """Base class for booking data errors."""

    def __init__(self, message: str, row: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.row = row

    def __str__(self) -> str:
        if self.row is None:
            return self.message
        return f"row {self.row}: {self.message}"


class SchemaError(BookingDataError):
    """A required field is missing or cannot be coerced to its type."""

    def __init__(
        self,
        field: str,
        message: str,
        value: Any = None,
        row: Optional[int] = None
    ):
        super().__init__(f"{field}: {message}", row=row)
        self.field = field
        self.value = value


class DateCompositionError(BookingDataError):
    """Day, month and year do not form a valid calendar date."""

    def __init__(
        self,
        year: Any,
        month: Any,
        day: Any,
        row: Optional[int] = None
    ):
        super().__init__(
            f"invalid arrival date (year={year}, month={month}, day={day})",
            row=row
        )
        self.year = year
        self.month = month
        self.day = day


class EmptyGroupError(BookingDataError):
    """A group was asked for a value but has no members."""

    def __init__(self, key: tuple):
        super().__init__(f"group {key!r} has no records")
        self.key = key
