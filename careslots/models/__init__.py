from careslots.models.appointment import BLOCKING_STATUSES, Appointment, AppointmentStatus
from careslots.models.schedule import WeeklySchedule
from careslots.models.slot import AvailableDates, AvailableSlots, ErrorResult, ResolvedSlot
from careslots.models.time_block import ProviderTimeBlock

__all__ = [
    "BLOCKING_STATUSES",
    "Appointment",
    "AppointmentStatus",
    "WeeklySchedule",
    "ProviderTimeBlock",
    "ResolvedSlot",
    "AvailableSlots",
    "AvailableDates",
    "ErrorResult",
]
