"""
Query engine for ProviderIndex.

Answers the two standard queries against a built index: a ranked provider
search filtered by zip code and appointment availability, and a detail lookup
for a single provider.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from provider_index.availability.matcher import (
    AppointmentQuery,
    AvailabilitySlot,
    contains_availability,
    is_available,
    is_upcoming,
)
from provider_index.index.provider_record import ProviderRecord
from provider_index.ingestion.contracts import Feature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FindDoctorsQueryParams:
    """
    Parameters for :meth:`QueryIndex.find_doctors`.

    ``zip_code`` and ``appointment_length_minutes`` are direct matches;
    ``current_time`` is the "now" of the query.
    """

    current_time: datetime
    zip_code: str
    appointment_length_minutes: int
    limit: int


@dataclass(frozen=True)
class DoctorSummary:
    """Summary information for a doctor, suitable for a list."""

    npi: str
    name: str
    first_availability: datetime


@dataclass(frozen=True)
class DoctorDetail:
    """Detailed information for a doctor with upcoming availability."""

    npi: str
    name: str
    zip_code: str
    features: Tuple[Feature, ...]
    availability: Tuple[AvailabilitySlot, ...]


def find_doctors(records: Mapping[str, ProviderRecord],
                 params: FindDoctorsQueryParams) -> List[DoctorSummary]:
    """
    Find recommended doctors for a zip code and appointment length.

    Args:
        records: Index records keyed by NPI, in encounter order
        params: Query parameters

    Returns:
        Up to ``params.limit`` summaries sorted by doctor score descending
    """
    if params.limit <= 0:
        return []

    query = AppointmentQuery(
        current_time=params.current_time,
        appointment_length_minutes=params.appointment_length_minutes,
    )

    # Candidates: exact zip match with at least one matching slot
    candidates = []
    for record in records.values():
        if record.zip_code != params.zip_code:
            continue
        if not contains_availability(record.availability, query):
            continue

        matching_slots = [slot for slot in record.availability if is_available(query, slot)]
        matching_slots.sort(key=lambda slot: slot.time)
        candidates.append((record, matching_slots))

    # sorted() is stable with reverse=True, so equal scores keep index order
    ranked = sorted(candidates, key=lambda candidate: candidate[0].score, reverse=True)
    ranked = ranked[:params.limit]

    logger.debug(f"find_doctors: {len(candidates)} candidates in {params.zip_code}, "
                 f"returning {len(ranked)}")

    return [
        DoctorSummary(
            npi=record.npi,
            name=record.name,
            first_availability=matching_slots[0].time,
        )
        for record, matching_slots in ranked
    ]


def get_doctor_detail(records: Mapping[str, ProviderRecord], current_time: datetime,
                      npi: str) -> Optional[DoctorDetail]:
    """
    Get the detailed record for a specific doctor.

    Args:
        records: Index records keyed by NPI
        current_time: Time used to filter out past appointments
        npi: NPI of the doctor to retrieve

    Returns:
        The doctor's detail with availability strictly after ``current_time``
        in original order, or None if the doctor is not in the index
    """
    record = records.get(npi)
    if record is None:
        logger.debug(f"get_doctor_detail: {npi} not found")
        return None

    return DoctorDetail(
        npi=record.npi,
        name=record.name,
        zip_code=record.zip_code,
        features=record.features,
        availability=tuple(slot for slot in record.availability
                           if is_upcoming(slot, current_time)),
    )


class QueryIndex:
    """
    Provides the standard queries on top of a built provider index.

    Instances are immutable; build a new index to pick up new data.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Dict[str, ProviderRecord]):
        """
        Initialize query index over finished records.

        Args:
            records: Provider records keyed by NPI, in encounter order
        """
        self._records = MappingProxyType(dict(records))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, npi: object) -> bool:
        return npi in self._records

    def find_doctors(self, params: FindDoctorsQueryParams) -> List[DoctorSummary]:
        """Retrieve recommended doctors, sorted by doctor score descending."""
        return find_doctors(self._records, params)

    def get_doctor_detail(self, current_time: datetime, npi: str) -> Optional[DoctorDetail]:
        """Get one doctor with appointments after ``current_time``, or None."""
        return get_doctor_detail(self._records, current_time, npi)
