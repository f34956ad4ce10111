"""Application settings resolved once per process."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_ENV_PREFIX = "TABLEREC_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def resolve_log_level() -> str:
    """Log level read on its own; unlike the numeric settings it cannot fail to parse."""
    return _env("LOG_LEVEL", "INFO")


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the training workflow.

    Defaults reproduce the reference run: 15000 synthetic rows, an 80/20
    split, 5-fold cross-validation and a 200-tree boosted model.
    """

    app_name: str
    app_version: str
    log_level: str

    # Synthetic data
    synthetic_row_count: int
    synthetic_random_seed: Optional[int]

    # Split / cross-validation
    test_fraction: float
    cross_validation_folds: int
    split_random_state: int

    # Gradient-boosted trees
    model_random_state: int
    gbt_num_leaves: int
    gbt_min_leaf_examples: int
    gbt_learning_rate: float
    gbt_num_trees: int
    model_version: str

    # Outputs
    model_artifact_path: Path
    metrics_log_path: Path
    prediction_error_log_path: Path
    log_test_mismatches: bool

    # Remote tracking
    tracking_enabled: bool
    tracking_url: str
    tracking_run_id: str
    tracking_timeout_seconds: Optional[float]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from defaults plus ``TABLEREC_*`` environment overrides."""

    output_dir = Path(_env("OUTPUT_DIR", "."))
    return Settings(
        app_name=_env("APP_NAME", "Table Recommendation Training"),
        app_version=_env("APP_VERSION", "1.0.0"),
        log_level=resolve_log_level(),
        synthetic_row_count=int(_env("SYNTHETIC_ROW_COUNT", "15000")),
        synthetic_random_seed=_env_optional_int("SYNTHETIC_RANDOM_SEED"),
        test_fraction=float(_env("TEST_FRACTION", "0.2")),
        cross_validation_folds=int(_env("CROSS_VALIDATION_FOLDS", "5")),
        split_random_state=int(_env("SPLIT_RANDOM_STATE", "0")),
        model_random_state=int(_env("MODEL_RANDOM_STATE", "0")),
        gbt_num_leaves=int(_env("GBT_NUM_LEAVES", "20")),
        gbt_min_leaf_examples=int(_env("GBT_MIN_LEAF_EXAMPLES", "10")),
        gbt_learning_rate=float(_env("GBT_LEARNING_RATE", "0.05")),
        gbt_num_trees=int(_env("GBT_NUM_TREES", "200")),
        model_version=_env("MODEL_VERSION", "v1"),
        model_artifact_path=output_dir
        / _env("MODEL_ARTIFACT_NAME", "table_recommendation_model.joblib"),
        metrics_log_path=output_dir / _env("METRICS_LOG_NAME", "metrics_log.jsonl"),
        prediction_error_log_path=output_dir
        / _env("PREDICTION_ERROR_LOG_NAME", "prediction_errors.jsonl"),
        log_test_mismatches=_env_bool("LOG_TEST_MISMATCHES", False),
        tracking_enabled=_env_bool("TRACKING_ENABLED", True),
        tracking_url=_env(
            "TRACKING_URL",
            "http://localhost:5000/api/2.0/mlflow/runs/log-metric",
        ),
        tracking_run_id=_env("TRACKING_RUN_ID", "demo_run"),
        tracking_timeout_seconds=_env_optional_float("TRACKING_TIMEOUT_SECONDS"),
    )
