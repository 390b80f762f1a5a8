"""Domain errors raised by the scheduling core and its storage layer."""


class SchedulingError(Exception):
    """Base class for scheduling failures that callers are expected to handle."""


class ConflictError(SchedulingError):
    """The requested slot was taken between display and write."""


class StorageUnavailable(SchedulingError):
    """The storage collaborator failed to answer a read or accept a write."""


class BookingNotFound(SchedulingError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found.")
        self.booking_id = booking_id
