"""
Row validation for ProviderIndex source datasets.

Drops rows the index builder would otherwise accept permissively: missing
identifiers, non-finite scores and appointments that do not end after they
start. Only applied when ``validation.drop_invalid_rows`` is enabled.
"""

import logging
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class SourceValidator:
    """
    Validates prepared source DataFrames and removes invalid rows.

    Security note: rows are reported by count only so provider data never
    ends up in validation logs.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize validator with configuration.

        Args:
            config: ``validation`` configuration section
        """
        self.config = config

        logger.info("Initialized SourceValidator")

    def _rule_masks(self, df: pd.DataFrame, dataset: str) -> Dict[str, pd.Series]:
        """Boolean masks marking the rows that fail each rule."""
        masks = {"missing_npi": df["npi"].isna()}

        if "score" in df.columns:
            scores = pd.to_numeric(df["score"], errors="coerce").to_numpy(dtype=float)
            masks["non_finite_score"] = pd.Series(~np.isfinite(scores), index=df.index)

        if dataset == "feature_scores":
            masks["unknown_feature"] = df["feature"].isna()

        if dataset == "available_appointments":
            missing_time = df["start_time"].isna() | df["end_time"].isna()
            masks["missing_time"] = missing_time
            masks["end_not_after_start"] = ~missing_time & (df["end_time"] <= df["start_time"])

        return masks

    def validate_dataset(self, df: pd.DataFrame, dataset: str) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        """
        Validate a prepared dataset and drop failing rows.

        Args:
            df: Prepared DataFrame with canonical columns
            dataset: Dataset name

        Returns:
            Tuple of (cleaned_df, validation_summary)
        """
        masks = self._rule_masks(df, dataset)

        invalid = pd.Series(False, index=df.index)
        for mask in masks.values():
            invalid |= mask.fillna(False).astype(bool)

        cleaned_df = df[~invalid]

        total_rows = len(df)
        summary = {
            "dataset": dataset,
            "total_rows": total_rows,
            "valid_rows": len(cleaned_df),
            "dropped_rows": total_rows - len(cleaned_df),
            "rule_failures": {rule: int(mask.sum()) for rule, mask in masks.items()},
            "success_rate": len(cleaned_df) / total_rows if total_rows > 0 else 1.0,
        }

        if summary["dropped_rows"]:
            failures = ", ".join(f"{rule}={count}" for rule, count in summary["rule_failures"].items()
                                 if count)
            logger.warning(f"Dropped {summary['dropped_rows']} invalid {dataset} rows ({failures})")

        logger.info(f"Validation of {dataset} completed: {summary['success_rate']:.2%} success rate")

        return cleaned_df, summary


def validate_sources_frame(df: pd.DataFrame, dataset: str,
                           config: Dict[str, Any]) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Convenience function to validate one prepared dataset.

    Args:
        df: Prepared DataFrame
        dataset: Dataset name
        config: Validation configuration

    Returns:
        Tuple of (cleaned_df, validation_summary)
    """
    return SourceValidator(config).validate_dataset(df, dataset)
