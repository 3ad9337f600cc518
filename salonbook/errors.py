# salonbook/errors.py


class SchedulingError(Exception):
    """Base for every error the booking engine raises on purpose."""

    status_code = 400

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__ or self.__class__.__name__


class ClosedDay(SchedulingError):
    """The stylist is not working on that date."""

    status_code = 422


class InvalidServiceConfiguration(SchedulingError):
    """processing_wait_time + processing_duration exceeds the service duration."""

    status_code = 422


class InvalidService(SchedulingError):
    """Unknown or inactive service requested."""

    status_code = 422


class SlotNoLongerAvailable(SchedulingError):
    """The requested start time is no longer free."""

    status_code = 409


class StylistNotFound(SchedulingError):
    """Stylist not found."""

    status_code = 404


class AppointmentNotFound(SchedulingError):
    """Appointment not found."""

    status_code = 404


class BookingTimeout(SchedulingError):
    """Timed out waiting for the stylist's calendar."""

    status_code = 503


class BookingInPast(SchedulingError):
    """Cannot book an appointment in the past."""

    status_code = 422


class InvalidBlockedPeriod(SchedulingError):
    """Blocked period is ambiguous or malformed."""

    status_code = 422


class BlockedPeriodConflict(InvalidBlockedPeriod):
    """Block overlaps an existing block."""

    status_code = 409


class AppointmentStateConflict(SchedulingError):
    """Appointment cannot change from its current status."""

    status_code = 409
