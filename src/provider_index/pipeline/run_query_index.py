"""
Main pipeline orchestrator for ProviderIndex.

Loads the source datasets, builds the query index and answers a single
provider search or detail query from the command line.
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from provider_index.config import load_index_config, validate_index_config
from provider_index.index.index_builder import IndexBuilder, IndexConfiguration, Sources
from provider_index.ingestion.source_loader import load_sources
from provider_index.query.query_engine import (
    DoctorDetail,
    DoctorSummary,
    FindDoctorsQueryParams,
    QueryIndex,
)

logger = logging.getLogger(__name__)


class QueryIndexPipeline:
    """
    Pipeline orchestrator for ProviderIndex.

    Coordinates loading, index construction and querying with stage timing
    and logging. Rebuilding replaces the held index as a whole.
    """

    def __init__(self, config_path: str = "config/query_index.yaml"):
        """
        Initialize pipeline with configuration.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = config_path
        self.config = load_index_config(config_path)
        if not validate_index_config(self.config):
            raise ValueError(f"Invalid configuration: {config_path}")

        self.index: Optional[QueryIndex] = None
        self.build_statistics: Dict[str, Any] = {}
        self.stage_times: Dict[str, float] = {}

        logger.info("Initialized ProviderIndex pipeline")

    def _start_stage_timer(self, stage_name: str):
        """Start timing for a pipeline stage."""
        self.stage_times[stage_name] = time.time()
        logger.info(f"Starting stage: {stage_name}")

    def _end_stage_timer(self, stage_name: str):
        """End timing for a pipeline stage."""
        if stage_name in self.stage_times:
            duration = time.time() - self.stage_times[stage_name]
            logger.info(f"Completed stage: {stage_name} in {duration:.2f} seconds")

    def load_data(self) -> Sources:
        """
        Load the three configured datasets.

        Returns:
            Sources snapshot
        """
        self._start_stage_timer("data_loading")

        try:
            sources = load_sources(self.config)
            self._end_stage_timer("data_loading")
            return sources

        except Exception as e:
            logger.error(f"Data loading failed: {e}")
            raise

    def build_index(self, sources: Sources) -> QueryIndex:
        """
        Build the query index and keep it for subsequent queries.

        Args:
            sources: Sources snapshot

        Returns:
            Newly built query index
        """
        self._start_stage_timer("index_build")

        try:
            builder = IndexBuilder(IndexConfiguration.from_dict(self.config.get("index", {})))
            index = builder.build(sources)

            # Swap in the new index only once it is complete
            self.index = index
            self.build_statistics = builder.get_build_statistics()

            self._end_stage_timer("index_build")
            return index

        except Exception as e:
            logger.error(f"Index build failed: {e}")
            raise

    def run_build(self) -> QueryIndex:
        """Load all datasets and build the index."""
        return self.build_index(self.load_data())

    def _require_index(self) -> QueryIndex:
        if self.index is None:
            return self.run_build()
        return self.index

    def find_doctors(self, zip_code: str, appointment_length_minutes: int,
                     limit: Optional[int] = None,
                     current_time: Optional[datetime] = None) -> List[DoctorSummary]:
        """
        Search for recommended doctors.

        Args:
            zip_code: Zip code to match exactly
            appointment_length_minutes: Appointment length to match exactly
            limit: Maximum results (defaults to ``query.default_limit``)
            current_time: Query "now" (defaults to the local current time)

        Returns:
            Doctor summaries sorted by score descending
        """
        if limit is None:
            limit = self.config.get("query", {}).get("default_limit", 10)

        params = FindDoctorsQueryParams(
            current_time=current_time or datetime.now(),
            zip_code=zip_code,
            appointment_length_minutes=appointment_length_minutes,
            limit=limit,
        )
        results = self._require_index().find_doctors(params)

        logger.info(f"Found {len(results)} doctors in {zip_code} with "
                    f"{appointment_length_minutes}-minute availability")
        return results

    def get_doctor_detail(self, npi: str,
                          current_time: Optional[datetime] = None) -> Optional[DoctorDetail]:
        """
        Look up a single doctor.

        Args:
            npi: NPI of the doctor
            current_time: Query "now" (defaults to the local current time)

        Returns:
            Doctor detail, or None if the doctor is not in the index
        """
        detail = self._require_index().get_doctor_detail(current_time or datetime.now(), npi)

        if detail is None:
            logger.info(f"Doctor {npi} not found in index")
        return detail


def _print_summaries(summaries: List[DoctorSummary]):
    print("\n" + "=" * 50)
    print("DOCTOR SEARCH RESULTS")
    print("=" * 50)
    if not summaries:
        print("No matching doctors")
    for position, summary in enumerate(summaries, start=1):
        print(f"{position}. {summary.name} (NPI {summary.npi}) - "
              f"first availability {summary.first_availability.isoformat()}")
    print("=" * 50)


def _print_detail(detail: Optional[DoctorDetail], npi: str):
    print("\n" + "=" * 50)
    print("DOCTOR DETAIL")
    print("=" * 50)
    if detail is None:
        print(f"Doctor {npi} not found")
    else:
        print(f"Name: {detail.name}")
        print(f"NPI: {detail.npi}")
        print(f"Zip Code: {detail.zip_code}")
        print(f"Features: {', '.join(feature.label for feature in detail.features) or 'none'}")
        print(f"Upcoming Appointments: {len(detail.availability)}")
        for slot in detail.availability:
            print(f"  {slot.time.isoformat()} ({slot.length_minutes} min)")
    print("=" * 50)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="ProviderIndex Doctor Query Pipeline")
    parser.add_argument("--config", default="config/query_index.yaml", help="Configuration file path")
    parser.add_argument("--current-time", type=datetime.fromisoformat,
                        help="Query time as ISO 8601 (default: now)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    find_parser = subparsers.add_parser("find", help="Search doctors by zip code and appointment length")
    find_parser.add_argument("--zip-code", required=True, help="Zip code (exact match)")
    find_parser.add_argument("--length", type=int, required=True, help="Appointment length in minutes")
    find_parser.add_argument("--limit", type=int, help="Maximum number of results")

    detail_parser = subparsers.add_parser("detail", help="Show one doctor with upcoming appointments")
    detail_parser.add_argument("--npi", required=True, help="Doctor NPI")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ProviderIndex pipeline."""
    args = parse_args(argv)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if args.log_file:
        Path(args.log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(args.log_file))

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )

    try:
        pipeline = QueryIndexPipeline(args.config)
        pipeline.run_build()

        if args.command == "find":
            summaries = pipeline.find_doctors(
                zip_code=args.zip_code,
                appointment_length_minutes=args.length,
                limit=args.limit,
                current_time=args.current_time,
            )
            _print_summaries(summaries)
        else:
            detail = pipeline.get_doctor_detail(args.npi, current_time=args.current_time)
            _print_detail(detail, args.npi)

        stats = pipeline.build_statistics
        print(f"Indexed Doctors: {stats['indexed_doctors']:,} of {stats['unique_doctors']:,} "
              f"({stats['index_coverage_percentage']:.1f}%)")
        return 0

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
