"""
Source loader for ProviderIndex.

Loads the doctor score, feature score and available appointment datasets
from local CSV, Parquet and JSON-lines files, maps their columns to the
canonical names and converts rows into typed records.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from provider_index.ingestion.contracts import Appointment, DoctorScore, Feature, FeatureScore
from provider_index.ingestion.source_validator import SourceValidator
from provider_index.index.index_builder import Sources

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    "doctor_scores": ["npi", "name", "score", "zip_code"],
    "feature_scores": ["npi", "feature", "score"],
    "available_appointments": ["npi", "start_time", "end_time"],
}

STRING_COLUMNS = ["npi", "name", "zip_code"]
NUMERIC_COLUMNS = ["score"]
DATETIME_COLUMNS = ["start_time", "end_time"]


class SourceLoader:
    """
    Loads the three index datasets from local files.

    Identifier and zip code columns are kept as strings so that leading
    zeros survive the round trip through pandas.
    """

    def __init__(self, config: Dict[str, Any], validator: Optional[SourceValidator] = None):
        """
        Initialize source loader with configuration.

        Args:
            config: ``sources`` section with a path and column mapping per dataset
            validator: Row validator applied before conversion (optional)
        """
        self.config = config
        self.validator = validator

        logger.info(f"Initialized SourceLoader (validation={'on' if validator else 'off'})")

    def load_file(self, path: str) -> pd.DataFrame:
        """
        Load a single dataset file.

        Args:
            path: Path to a .csv, .parquet, .json or .jsonl file

        Returns:
            Raw DataFrame
        """
        file_format = Path(path).suffix.lower().lstrip(".")

        try:
            if file_format == "csv":
                df = pd.read_csv(path, dtype=str)
            elif file_format == "parquet":
                df = pd.read_parquet(path, engine="pyarrow")
            elif file_format in ("json", "jsonl"):
                df = pd.read_json(path, lines=True, dtype=False, convert_dates=False)
            else:
                raise ValueError(f"Unsupported file format: {path}")

            logger.info(f"Loaded {len(df)} rows from {path}")
            return df

        except Exception as e:
            logger.error(f"Failed to load file {path}: {e}")
            raise

    def prepare_dataframe(self, df: pd.DataFrame, dataset: str) -> pd.DataFrame:
        """
        Rename columns to canonical names and coerce column types.

        Args:
            df: Raw DataFrame
            dataset: Dataset name (doctor_scores, feature_scores, available_appointments)

        Returns:
            DataFrame with canonical columns only
        """
        if dataset not in REQUIRED_COLUMNS:
            raise ValueError(f"Unknown dataset: {dataset}")

        # Mapping is canonical name -> source column
        column_map = self.config.get(dataset, {}).get("columns", {}) or {}
        renamed = df.rename(columns={source: canonical for canonical, source in column_map.items()})

        required = REQUIRED_COLUMNS[dataset]
        missing_columns = [col for col in required if col not in renamed.columns]
        if missing_columns:
            raise ValueError(f"Missing required columns for {dataset}: {missing_columns}")

        prepared = renamed[required].copy()

        for col in required:
            if col in STRING_COLUMNS:
                prepared[col] = prepared[col].map(_to_string)
            elif col in NUMERIC_COLUMNS:
                prepared[col] = pd.to_numeric(prepared[col], errors="coerce")
            elif col in DATETIME_COLUMNS:
                prepared[col] = pd.to_datetime(prepared[col], errors="coerce", format="ISO8601")
            elif col == "feature":
                prepared[col] = prepared[col].map(_to_feature)

        return prepared

    def load_dataset(self, dataset: str) -> pd.DataFrame:
        """
        Load, prepare and (optionally) validate one configured dataset.

        Args:
            dataset: Dataset name

        Returns:
            Prepared DataFrame
        """
        dataset_config = self.config.get(dataset, {})
        path = dataset_config.get("path")
        if not path:
            raise ValueError(f"No path configured for dataset: {dataset}")

        df = self.prepare_dataframe(self.load_file(path), dataset)

        if self.validator is not None:
            df, _ = self.validator.validate_dataset(df, dataset)

        return df

    def to_doctor_scores(self, df: pd.DataFrame) -> List[DoctorScore]:
        """Convert a prepared doctor score DataFrame into records."""
        rows = _complete_rows(df, ["npi"], "doctor_scores")
        return [
            DoctorScore(
                npi=row["npi"],
                name=_to_string(row["name"]) or "",
                score=row["score"],
                zip_code=_to_string(row["zip_code"]) or "",
            )
            for row in rows
        ]

    def to_feature_scores(self, df: pd.DataFrame) -> List[FeatureScore]:
        """Convert a prepared feature score DataFrame into records."""
        rows = _complete_rows(df, ["npi", "feature"], "feature_scores")
        return [
            FeatureScore(npi=row["npi"], feature=row["feature"], score=row["score"])
            for row in rows
        ]

    def to_appointments(self, df: pd.DataFrame) -> List[Appointment]:
        """Convert a prepared appointment DataFrame into records."""
        rows = _complete_rows(df, ["npi", "start_time", "end_time"], "available_appointments")
        return [
            Appointment(
                npi=row["npi"],
                start_time=row["start_time"].to_pydatetime(),
                end_time=row["end_time"].to_pydatetime(),
            )
            for row in rows
        ]

    def load_sources(self) -> Sources:
        """
        Load all three configured datasets.

        Returns:
            Sources snapshot ready for the index builder
        """
        sources = Sources(
            doctor_scores=self.to_doctor_scores(self.load_dataset("doctor_scores")),
            feature_scores=self.to_feature_scores(self.load_dataset("feature_scores")),
            available_appointments=self.to_appointments(self.load_dataset("available_appointments")),
        )

        logger.info(f"Loaded sources: {len(sources.doctor_scores):,} doctor scores, "
                    f"{len(sources.feature_scores):,} feature scores, "
                    f"{len(sources.available_appointments):,} appointments")
        return sources


def _to_string(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    # Numeric id columns with nulls arrive as float64
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_feature(value: Any) -> Optional[Feature]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    try:
        return Feature.parse(value)
    except ValueError:
        return None


def _complete_rows(df: pd.DataFrame, key_columns: List[str], dataset: str) -> List[Dict[str, Any]]:
    """Rows with every key column present; the rest cannot form a record."""
    if df.empty:
        return []

    mask = df[key_columns].notna().all(axis=1)
    skipped = int((~mask).sum())
    if skipped:
        logger.warning(f"Skipped {skipped} {dataset} rows with missing or unparseable {key_columns}")

    return df[mask].to_dict("records")


def load_sources(config: Dict[str, Any]) -> Sources:
    """
    Convenience function to load all datasets described by a configuration.

    Args:
        config: Full configuration (``sources`` and ``validation`` sections)

    Returns:
        Sources snapshot
    """
    validator = None
    if config.get("validation", {}).get("drop_invalid_rows", False):
        validator = SourceValidator(config.get("validation", {}))

    loader = SourceLoader(config.get("sources", {}), validator)
    return loader.load_sources()
