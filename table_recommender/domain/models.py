"""Domain models for table-assignment training data and evaluation results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Sequence

import pandas as pd


POSITIVE_CLASS_WEIGHT = 7.0
NEGATIVE_CLASS_WEIGHT = 2.0

AREAS = ("Main", "Terrace", "Private")
TABLE_NUMBERS = ("T1", "T2", "T3", "T4", "T5")

FLAG_COLUMNS = (
    "is_vip",
    "handicap_accessible",
    "vegetarian",
    "requested_booth",
    "requested_high_chair",
    "requested_stroller",
    "is_peak_hour",
    "prefers_quiet",
    "is_frequent_customer",
    "is_weekend",
    "seasonal_trend",
)

LABEL_COLUMN = "label"
WEIGHT_COLUMN = "class_weight"


def class_weight_for(label: bool) -> float:
    return POSITIVE_CLASS_WEIGHT if label else NEGATIVE_CLASS_WEIGHT


@dataclass(frozen=True)
class BookingRecord:
    """One candidate table assignment for a booking."""

    booking_id: str
    membership_id: int
    is_vip: float
    handicap_accessible: float
    vegetarian: float
    covers: float
    requested_booth: float
    requested_high_chair: float
    requested_stroller: float
    table_number: str
    table_top_size: float
    area: str
    label: bool
    visit_hour: float
    avg_stay_minutes: float
    class_weight: float
    visit_day_of_week: float
    is_peak_hour: float
    booking_frequency: float
    prefers_quiet: float
    is_frequent_customer: float
    table_occupancy_rate: float
    is_weekend: float
    special_request_count: float
    booking_recency: float
    average_covers_per_booking: float
    seasonal_trend: float


BOOKING_COLUMNS = tuple(field.name for field in fields(BookingRecord))


def records_to_frame(records: Sequence[BookingRecord]) -> pd.DataFrame:
    """Tabulate records, keeping every column even when there are no rows."""

    return pd.DataFrame(
        [asdict(record) for record in records],
        columns=list(BOOKING_COLUMNS),
    )


@dataclass(frozen=True)
class EvaluationMetrics:
    accuracy: float
    auc: float
    f1_score: float
    positive_precision: float
    positive_recall: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class CrossValidationResult:
    fold: int
    metrics: EvaluationMetrics
    train_rows: int
    test_rows: int


def average_metrics(results: Sequence[CrossValidationResult]) -> EvaluationMetrics:
    """Arithmetic mean of each metric across folds."""

    if not results:
        raise ValueError("at least one cross-validation result is required")
    count = float(len(results))
    return EvaluationMetrics(
        accuracy=sum(r.metrics.accuracy for r in results) / count,
        auc=sum(r.metrics.auc for r in results) / count,
        f1_score=sum(r.metrics.f1_score for r in results) / count,
        positive_precision=sum(r.metrics.positive_precision for r in results) / count,
        positive_recall=sum(r.metrics.positive_recall for r in results) / count,
    )


@dataclass(frozen=True)
class ModelMetadata:
    model_type: str
    model_version: str
    trained_at: str
    training_rows: int
    feature_columns: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "model_type": self.model_type,
            "model_version": self.model_version,
            "trained_at": self.trained_at,
            "training_rows": self.training_rows,
            "feature_columns": list(self.feature_columns),
        }
