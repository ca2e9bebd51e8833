"""
Unit tests for the query engine.
"""

import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from provider_index.availability.matcher import AvailabilitySlot
from provider_index.index.index_builder import IndexConfiguration, Sources, build_index
from provider_index.ingestion.contracts import Appointment, DoctorScore, Feature, FeatureScore
from provider_index.query.query_engine import DoctorSummary, FindDoctorsQueryParams


def offer(npi, start, minutes):
    return Appointment(npi=npi, start_time=start, end_time=start + timedelta(minutes=minutes))


class TestFindDoctors:
    """Test cases for ranked provider search."""

    def setup_method(self):
        """Setup test fixtures."""
        self.config = IndexConfiguration(min_doctor_score=50, min_feature_score=50)
        self.now = datetime(2030, 1, 15, 8, 0)
        self.nine = datetime(2030, 1, 15, 9, 0)

    def params(self, **overrides):
        values = {
            "current_time": self.now,
            "zip_code": "10001",
            "appointment_length_minutes": 30,
            "limit": 5,
        }
        values.update(overrides)
        return FindDoctorsQueryParams(**values)

    def test_single_provider_scenario(self):
        """Test one matching doctor for 30 minutes and none for 45 minutes."""
        index = build_index(self.config, Sources(
            doctor_scores=[DoctorScore(npi="P1", name="Pat One", score=80, zip_code="10001")],
            feature_scores=[FeatureScore(npi="P1", feature=Feature.ONLY_NECESSARY_LABS, score=60)],
            available_appointments=[offer("P1", self.nine, 30)],
        ))

        results = index.find_doctors(self.params())
        assert results == [DoctorSummary(npi="P1", name="Pat One", first_availability=self.nine)]

        assert index.find_doctors(self.params(appointment_length_minutes=45)) == []

    def test_ranking_is_stable_and_limited(self):
        """Test ties keep encounter order and results stop at the limit."""
        index = build_index(self.config, Sources(
            doctor_scores=[
                DoctorScore(npi="A", name="A", score=90, zip_code="10001"),
                DoctorScore(npi="B", name="B", score=90, zip_code="10001"),
                DoctorScore(npi="C", name="C", score=70, zip_code="10001"),
            ],
            available_appointments=[offer(npi, self.nine, 30) for npi in ("A", "B", "C")],
        ))

        results = index.find_doctors(self.params(limit=2))
        assert [summary.npi for summary in results] == ["A", "B"]

    def test_sorted_by_score_descending(self):
        """Test results are ordered by doctor score."""
        index = build_index(self.config, Sources(
            doctor_scores=[
                DoctorScore(npi="LOW", name="Low", score=60, zip_code="10001"),
                DoctorScore(npi="HIGH", name="High", score=99, zip_code="10001"),
                DoctorScore(npi="MID", name="Mid", score=75, zip_code="10001"),
            ],
            available_appointments=[offer(npi, self.nine, 30) for npi in ("LOW", "HIGH", "MID")],
        ))

        results = index.find_doctors(self.params())
        assert [summary.npi for summary in results] == ["HIGH", "MID", "LOW"]

    def test_first_availability_is_earliest_matching_slot(self):
        """Test first availability skips past and wrong-length slots and sorts the rest."""
        index = build_index(self.config, Sources(
            doctor_scores=[DoctorScore(npi="A", name="A", score=80, zip_code="10001")],
            available_appointments=[
                offer("A", self.nine + timedelta(hours=3), 30),
                offer("A", self.now - timedelta(hours=1), 30),
                offer("A", self.nine - timedelta(minutes=30), 45),
                offer("A", self.nine + timedelta(hours=1), 30),
            ],
        ))

        results = index.find_doctors(self.params())
        assert results[0].first_availability == self.nine + timedelta(hours=1)

    def test_zip_code_is_exact_match(self):
        """Test zip codes are compared without normalization."""
        index = build_index(self.config, Sources(
            doctor_scores=[
                DoctorScore(npi="A", name="A", score=80, zip_code="02134"),
                DoctorScore(npi="B", name="B", score=80, zip_code="2134"),
            ],
            available_appointments=[offer("A", self.nine, 30), offer("B", self.nine, 30)],
        ))

        results = index.find_doctors(self.params(zip_code="02134"))
        assert [summary.npi for summary in results] == ["A"]

    def test_slot_at_current_time_is_excluded(self):
        """Test a slot starting exactly at the query time does not match."""
        index = build_index(self.config, Sources(
            doctor_scores=[DoctorScore(npi="A", name="A", score=80, zip_code="10001")],
            available_appointments=[offer("A", self.now, 30)],
        ))

        assert index.find_doctors(self.params()) == []

    def test_excluded_doctor_never_returned(self):
        """Test doctors below the threshold never appear in search results."""
        index = build_index(self.config, Sources(
            doctor_scores=[DoctorScore(npi="A", name="A", score=49, zip_code="10001")],
            available_appointments=[offer("A", self.nine, 30)],
        ))

        assert index.find_doctors(self.params()) == []

    def test_non_positive_limit(self):
        """Test a zero or negative limit yields no results."""
        index = build_index(self.config, Sources(
            doctor_scores=[DoctorScore(npi="A", name="A", score=80, zip_code="10001")],
            available_appointments=[offer("A", self.nine, 30)],
        ))

        assert index.find_doctors(self.params(limit=0)) == []
        assert index.find_doctors(self.params(limit=-1)) == []


class TestGetDoctorDetail:
    """Test cases for single-provider detail lookup."""

    def setup_method(self):
        """Setup test fixtures."""
        self.now = datetime(2030, 1, 15, 8, 0)
        self.index = build_index(
            IndexConfiguration(min_doctor_score=50, min_feature_score=50),
            Sources(
                doctor_scores=[
                    DoctorScore(npi="A", name="Alice", score=80, zip_code="10001"),
                    DoctorScore(npi="B", name="Bob", score=60, zip_code="94110"),
                ],
                feature_scores=[
                    FeatureScore(npi="A", feature=Feature.ONLY_NECESSARY_IMAGING_STUDIES, score=75),
                ],
                available_appointments=[
                    offer("A", self.now + timedelta(hours=5), 30),
                    offer("A", self.now, 30),
                    offer("A", self.now - timedelta(days=1), 30),
                    offer("A", self.now + timedelta(hours=1), 60),
                    offer("B", self.now - timedelta(hours=1), 30),
                ],
            ),
        )

    def test_unknown_doctor(self):
        """Test unknown NPI returns None."""
        assert self.index.get_doctor_detail(self.now, "unknown-id") is None

    def test_detail_keeps_upcoming_slots_in_original_order(self):
        """Test only strictly future slots are returned, unsorted."""
        detail = self.index.get_doctor_detail(self.now, "A")

        assert detail.npi == "A"
        assert detail.name == "Alice"
        assert detail.zip_code == "10001"
        assert detail.features == (Feature.ONLY_NECESSARY_IMAGING_STUDIES,)
        assert detail.availability == (
            AvailabilitySlot(time=self.now + timedelta(hours=5), length_minutes=30),
            AvailabilitySlot(time=self.now + timedelta(hours=1), length_minutes=60),
        )

    def test_doctor_without_upcoming_slots(self):
        """Test a known doctor with only past slots returns empty availability."""
        detail = self.index.get_doctor_detail(self.now, "B")

        assert detail is not None
        assert detail.zip_code == "94110"
        assert detail.availability == ()


if __name__ == "__main__":
    pytest.main([__file__])
