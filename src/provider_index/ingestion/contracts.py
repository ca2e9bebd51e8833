"""
Data contracts for ProviderIndex.

Record types exported by the upstream data pipeline: doctor scores, feature
scores and available appointments.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Union


class Feature(IntEnum):
    """
    Clinical-adherence category a doctor is scored on.

    Features are advertised to users to explain why a doctor was recommended.
    Not every doctor is scored on every feature.
    """

    # Orders labs only when clinically indicated.
    ONLY_NECESSARY_LABS = 1
    # Orders studies requiring an incision only when clinically indicated.
    ONLY_NECESSARY_INVASIVE_STUDIES = 2
    # Orders MRI, CT, X-Ray and other imaging only when clinically indicated.
    ONLY_NECESSARY_IMAGING_STUDIES = 3
    # Only orders surgery when physical therapy does not yield results.
    PT_BEFORE_SURGERY = 4
    # Orders medications only when clinically indicated.
    ONLY_INDICATED_MEDICATIONS = 5

    @property
    def label(self) -> str:
        """Pipeline-style name, e.g. ``OnlyNecessaryLabs``."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: Union["Feature", int, str]) -> "Feature":
        """
        Resolve a feature from its integer value or name.

        Accepts enum members, integers, numeric strings, member names
        (``ONLY_NECESSARY_LABS``) and pipeline labels (``OnlyNecessaryLabs``).

        Raises:
            ValueError: If the value names no known feature
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            key = _normalize_feature_name(text)
            for member in cls:
                if _normalize_feature_name(member.name) == key:
                    return member
            raise ValueError(f"Unknown feature: {value!r}")

        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Unknown feature: {value!r}")

        return cls(int(value))


_LABELS = {
    Feature.ONLY_NECESSARY_LABS: "OnlyNecessaryLabs",
    Feature.ONLY_NECESSARY_INVASIVE_STUDIES: "OnlyNecessaryInvasiveStudies",
    Feature.ONLY_NECESSARY_IMAGING_STUDIES: "OnlyNecessaryImagingStudies",
    Feature.PT_BEFORE_SURGERY: "PTBeforeSurgery",
    Feature.ONLY_INDICATED_MEDICATIONS: "OnlyIndicatedMedications",
}


def _normalize_feature_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


@dataclass(frozen=True)
class DoctorScore:
    """Scoring result for a doctor. ``npi`` is the unique key."""

    npi: str
    name: str
    score: float
    zip_code: str


@dataclass(frozen=True)
class FeatureScore:
    """Scoring result for a feature ascribed to a doctor (range 0-100)."""

    npi: str
    feature: Feature
    score: float


@dataclass(frozen=True)
class Appointment:
    """
    An appointment slot offered by a doctor.

    Appointments cannot be divided or combined. Times are in the local
    timezone shared with callers.
    """

    npi: str
    start_time: datetime
    end_time: datetime
