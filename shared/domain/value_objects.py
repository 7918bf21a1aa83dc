"""
Common Value Objects

Value objects used across multiple domains:
- TimeWindow: A half-open interval of time (booking slot, availability query)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

ONE_HOUR = timedelta(hours=1)
ONE_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class TimeWindow:
    """
    Time window value object

    Represents the interval [start, end): start is inclusive, end is exclusive.
    Used for booking slots, extension windows and availability checks.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start ({self.start}) must be before its end ({self.end})")

    @classmethod
    def for_hours(cls, start: datetime, hours: int) -> 'TimeWindow':
        """Window of ``hours`` whole hours beginning at ``start``"""
        return cls(start, start + hours * ONE_HOUR)

    def overlaps_with(self, other: 'TimeWindow') -> bool:
        """
        Check if this window overlaps with another

        Note: end is exclusive, so adjacent windows don't overlap.

        Examples:
            - [10:00, 12:00) overlaps with [11:00, 13:00) -> True
            - [10:00, 12:00) overlaps with [12:00, 14:00) -> False (adjacent)
        """
        if not isinstance(other, TimeWindow):
            raise TypeError("Can only check overlap with another TimeWindow")

        return self.start < other.end and self.end > other.start

    def following(self, hours: int) -> 'TimeWindow':
        """The window of ``hours`` hours right after this one ends"""
        return TimeWindow.for_hours(self.end, hours)

    def is_current(self, moment: datetime) -> bool:
        """True while ``moment`` lies inside the window, both ends included"""
        return self.start <= moment <= self.end

    @property
    def minutes(self) -> int:
        return int((self.end - self.start) // ONE_MINUTE)

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"
