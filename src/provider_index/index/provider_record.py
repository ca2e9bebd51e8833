"""
Aggregate provider record held by the query index.
"""

from dataclasses import dataclass
from typing import Tuple

from provider_index.availability.matcher import AvailabilitySlot
from provider_index.ingestion.contracts import Feature


@dataclass(frozen=True)
class ProviderRecord:
    """
    Everything the index knows about one doctor.

    ``features`` keeps encounter order and may repeat a tag; ``availability``
    keeps append order and includes past slots.
    """

    npi: str
    name: str
    zip_code: str
    score: float
    features: Tuple[Feature, ...] = ()
    availability: Tuple[AvailabilitySlot, ...] = ()
