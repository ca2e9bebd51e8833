"""
Availability matcher for ProviderIndex.

Pure predicates deciding whether an appointment slot satisfies a query for a
future appointment of an exact length, plus the conversion from raw
appointment offers to slots.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from provider_index.ingestion.contracts import Appointment

ONE_MINUTE = timedelta(minutes=1)


@dataclass(frozen=True)
class AvailabilitySlot:
    """An appointment a doctor offers: start time and whole-minute length."""

    time: datetime
    length_minutes: int


@dataclass(frozen=True)
class AppointmentQuery:
    """The "now" of a query and the exact appointment length wanted."""

    current_time: datetime
    appointment_length_minutes: int


def slot_length_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Length of an appointment in whole minutes.

    Floors the difference, so 10:00:00 to 10:29:59.999 is 29 minutes.
    """
    return (end_time - start_time) // ONE_MINUTE


def slot_from_offer(appointment: Appointment) -> AvailabilitySlot:
    """Convert an appointment offer into an availability slot."""
    return AvailabilitySlot(
        time=appointment.start_time,
        length_minutes=slot_length_minutes(appointment.start_time, appointment.end_time),
    )


def is_upcoming(slot: AvailabilitySlot, current_time: datetime) -> bool:
    """True if the slot starts strictly after ``current_time``."""
    return current_time < slot.time


def is_available(query: AppointmentQuery, slot: AvailabilitySlot) -> bool:
    """
    Check whether a slot satisfies an appointment query.

    The slot must start strictly after the query time and have exactly the
    requested length. Longer or shorter slots never match.
    """
    return (is_upcoming(slot, query.current_time)
            and query.appointment_length_minutes == slot.length_minutes)


def contains_availability(slots: Iterable[AvailabilitySlot], query: AppointmentQuery) -> bool:
    """Quick existence check: does any slot satisfy the query?"""
    return any(is_available(query, slot) for slot in slots)
