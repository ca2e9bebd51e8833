"""
Index builder for ProviderIndex.

Joins doctor scores, feature scores and available appointments by NPI into
an immutable query index. Doctors below the score threshold are dropped
together with their features and appointments.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List

from provider_index.availability.matcher import AvailabilitySlot, slot_from_offer
from provider_index.index.provider_record import ProviderRecord
from provider_index.ingestion.contracts import Appointment, DoctorScore, Feature, FeatureScore
from provider_index.query.query_engine import QueryIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexConfiguration:
    """Score thresholds for listing doctors and features. Range: 0-100."""

    min_doctor_score: float
    min_feature_score: float

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "IndexConfiguration":
        """Create from the ``index`` section of the configuration."""
        return cls(
            min_doctor_score=config.get("min_doctor_score", 0),
            min_feature_score=config.get("min_feature_score", 0),
        )


@dataclass(frozen=True)
class Sources:
    """Snapshot of the three datasets exported from the data pipeline."""

    doctor_scores: Iterable[DoctorScore] = field(default_factory=tuple)
    feature_scores: Iterable[FeatureScore] = field(default_factory=tuple)
    available_appointments: Iterable[Appointment] = field(default_factory=tuple)


class IndexBuilder:
    """
    Builds an immutable query index from a complete dataset snapshot.

    Each build is a full rebuild; the returned index shares no state with
    the builder or with previously built indexes.
    """

    def __init__(self, config: IndexConfiguration):
        """
        Initialize index builder with thresholds.

        Args:
            config: Doctor and feature score thresholds
        """
        self.config = config
        self.statistics: Dict[str, Any] = {}

        logger.info(f"Initialized IndexBuilder (min_doctor_score={config.min_doctor_score}, "
                    f"min_feature_score={config.min_feature_score})")

    def build(self, sources: Sources) -> QueryIndex:
        """
        Build a query index from the source datasets.

        Args:
            sources: Doctor scores, feature scores and available appointments

        Returns:
            Immutable query index
        """
        stats = {
            "total_doctor_scores": 0,
            "unique_doctors": 0,
            "indexed_doctors": 0,
            "excluded_doctors": 0,
            "total_feature_scores": 0,
            "indexed_features": 0,
            "below_threshold_features": 0,
            "unindexed_provider_features": 0,
            "total_appointments": 0,
            "indexed_appointments": 0,
            "unindexed_provider_appointments": 0,
        }

        records: Dict[str, ProviderRecord] = {}
        features: Dict[str, List[Feature]] = {}
        availability: Dict[str, List[AvailabilitySlot]] = {}

        seen_npis = set()

        # Only doctors with a passing score are indexed; a later passing
        # duplicate replaces the earlier entry
        for doctor in sources.doctor_scores:
            stats["total_doctor_scores"] += 1
            seen_npis.add(doctor.npi)
            if doctor.score >= self.config.min_doctor_score:
                records[doctor.npi] = ProviderRecord(
                    npi=doctor.npi,
                    name=doctor.name,
                    zip_code=doctor.zip_code,
                    score=doctor.score,
                )
                features[doctor.npi] = []
                availability[doctor.npi] = []

        for feature_score in sources.feature_scores:
            stats["total_feature_scores"] += 1
            doctor_features = features.get(feature_score.npi)
            if doctor_features is None:
                stats["unindexed_provider_features"] += 1
            elif feature_score.score >= self.config.min_feature_score:
                doctor_features.append(feature_score.feature)
                stats["indexed_features"] += 1
            else:
                stats["below_threshold_features"] += 1

        for appointment in sources.available_appointments:
            stats["total_appointments"] += 1
            doctor_availability = availability.get(appointment.npi)
            if doctor_availability is None:
                stats["unindexed_provider_appointments"] += 1
            else:
                doctor_availability.append(slot_from_offer(appointment))
                stats["indexed_appointments"] += 1

        finished = {
            npi: replace(
                record,
                features=tuple(features[npi]),
                availability=tuple(availability[npi]),
            )
            for npi, record in records.items()
        }

        # Doctor counts are per unique NPI; total_doctor_scores counts rows
        stats["unique_doctors"] = len(seen_npis)
        stats["indexed_doctors"] = len(finished)
        stats["excluded_doctors"] = len(seen_npis) - len(finished)
        stats["index_coverage_percentage"] = (
            len(finished) / len(seen_npis) * 100
            if seen_npis else 0.0
        )
        self.statistics = stats

        if stats["unindexed_provider_features"] or stats["unindexed_provider_appointments"]:
            logger.warning(f"Dropped {stats['unindexed_provider_features']:,} feature scores and "
                           f"{stats['unindexed_provider_appointments']:,} appointments for "
                           f"doctors not in the index")

        logger.info(f"Built index: {stats['indexed_doctors']:,} of {stats['unique_doctors']:,} "
                    f"doctors, {stats['indexed_features']:,} features, "
                    f"{stats['indexed_appointments']:,} appointments")

        return QueryIndex(finished)

    def get_build_statistics(self) -> Dict[str, Any]:
        """
        Statistics from the most recent build.

        Returns:
            Dictionary with dataset counts, drop counts and index coverage
        """
        return dict(self.statistics)


def build_index(config: IndexConfiguration, sources: Sources) -> QueryIndex:
    """
    Convenience function to build a query index.

    Args:
        config: Doctor and feature score thresholds
        sources: Source datasets

    Returns:
        Immutable query index
    """
    return IndexBuilder(config).build(sources)
