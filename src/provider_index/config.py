"""
Configuration utilities for ProviderIndex.

Provides configuration loading and validation for the index thresholds,
dataset sources, validation switches and query defaults.
"""

import logging
import yaml
from typing import Dict, Any
from pathlib import Path

logger = logging.getLogger(__name__)

DATASETS = ("doctor_scores", "feature_scores", "available_appointments")


def load_index_config(config_path: str = "config/query_index.yaml") -> Dict[str, Any]:
    """
    Load index configuration from YAML file.

    Values missing from the file are filled in from the defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.warning(f"Configuration file {config_path} not found, using defaults")
            return get_default_index_config()

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        logger.info(f"Loaded index configuration from {config_path}")
        return merge_configs(get_default_index_config(), config)

    except Exception as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        return get_default_index_config()


def get_default_index_config() -> Dict[str, Any]:
    """
    Get default index configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "index": {
            "min_doctor_score": 50,
            "min_feature_score": 50
        },
        "sources": {
            "doctor_scores": {
                "path": "data/doctor_scores.csv",
                "columns": {}
            },
            "feature_scores": {
                "path": "data/feature_scores.csv",
                "columns": {}
            },
            "available_appointments": {
                "path": "data/available_appointments.csv",
                "columns": {}
            }
        },
        "validation": {
            "drop_invalid_rows": False
        },
        "query": {
            "default_limit": 10
        }
    }


def validate_index_config(config: Dict[str, Any]) -> bool:
    """
    Validate index configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ["index", "sources"]

    for section in required_sections:
        if section not in config:
            logger.error(f"Missing required configuration section: {section}")
            return False

    # Thresholds
    index_config = config.get("index", {})
    for key in ["min_doctor_score", "min_feature_score"]:
        value = index_config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
            logger.error(f"index.{key} must be a number between 0 and 100")
            return False

    # Sources
    sources_config = config.get("sources", {})
    for dataset in DATASETS:
        dataset_config = sources_config.get(dataset)
        if not isinstance(dataset_config, dict) or not dataset_config.get("path"):
            logger.error(f"sources.{dataset}.path must be set")
            return False
        if not isinstance(dataset_config.get("columns", {}), dict):
            logger.error(f"sources.{dataset}.columns must be a mapping")
            return False

    validation_config = config.get("validation", {})
    if not isinstance(validation_config.get("drop_invalid_rows", False), bool):
        logger.error("validation.drop_invalid_rows must be a boolean")
        return False

    default_limit = config.get("query", {}).get("default_limit", 10)
    if isinstance(default_limit, bool) or not isinstance(default_limit, int):
        logger.error("query.default_limit must be an integer")
        return False

    logger.info("Configuration validation passed")
    return True


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Override configuration

    Returns:
        Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged
