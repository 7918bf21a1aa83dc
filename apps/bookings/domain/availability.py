"""
Lot Availability

A lot has a fixed number of spots. A booking occupies one spot for its
window [start_time, end_time) while it is CONFIRMED or ACTIVE. A new
window fits as long as fewer than ``total_spots`` occupying bookings
overlap it.

Counting itself happens in the database (see services.count_overlapping_bookings);
this module holds the rule applied to the count.
"""

from dataclasses import dataclass

from shared.domain.exceptions import ConflictError
from shared.domain.value_objects import TimeWindow


@dataclass(frozen=True)
class Availability:
    """Capacity of a lot for one candidate window"""
    window: TimeWindow
    total_spots: int
    overlapping: int

    @property
    def available_spots(self) -> int:
        return max(0, self.total_spots - self.overlapping)

    @property
    def is_available(self) -> bool:
        return self.overlapping < self.total_spots

    def ensure_available(self, message: str | None = None) -> None:
        """
        Raise ConflictError when every spot is taken for the window

        Used both for new bookings and for extensions.
        """
        if not self.is_available:
            raise ConflictError(message)

    def as_dict(self) -> dict:
        return {
            'start_time': self.window.start,
            'end_time': self.window.end,
            'total_spots': self.total_spots,
            'overlapping': self.overlapping,
            'available_spots': self.available_spots,
            'is_available': self.is_available,
        }
