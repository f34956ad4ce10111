"""Declarative feature pipeline shared by training and evaluation."""

from __future__ import annotations

import numpy as np
from scipy.special import ndtr
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import HistGradientBoostingClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import FunctionTransformer, MinMaxScaler, OneHotEncoder, StandardScaler

from table_recommender.domain.constraints import TrainingConfig


CATEGORICAL_COLUMNS = ("area", "visit_hour", "visit_day_of_week")

MIN_MAX_COLUMNS = (
    "covers",
    "table_top_size",
    "avg_stay_minutes",
    "table_occupancy_rate",
    "booking_recency",
    "average_covers_per_booking",
)

LOG_MEAN_VARIANCE_COLUMNS = ("booking_frequency",)

# (output name, kind, source column) in the order the combined Features
# vector is laid out.
FEATURE_SPEC = (
    ("is_vip", "raw", "is_vip"),
    ("handicap_accessible", "raw", "handicap_accessible"),
    ("vegetarian", "raw", "vegetarian"),
    ("covers_norm", "min_max", "covers"),
    ("requested_booth", "raw", "requested_booth"),
    ("requested_high_chair", "raw", "requested_high_chair"),
    ("requested_stroller", "raw", "requested_stroller"),
    ("table_top_size_norm", "min_max", "table_top_size"),
    ("area_encoded", "one_hot", "area"),
    ("visit_hour_encoded", "one_hot", "visit_hour"),
    ("visit_day_of_week_encoded", "one_hot", "visit_day_of_week"),
    ("avg_stay_minutes_norm", "min_max", "avg_stay_minutes"),
    ("is_peak_hour", "raw", "is_peak_hour"),
    ("booking_frequency_norm", "log_mean_variance", "booking_frequency"),
    ("prefers_quiet", "raw", "prefers_quiet"),
    ("is_frequent_customer", "raw", "is_frequent_customer"),
    ("table_occupancy_rate_norm", "min_max", "table_occupancy_rate"),
    ("is_weekend", "raw", "is_weekend"),
    ("special_request_count", "raw", "special_request_count"),
    ("booking_recency_norm", "min_max", "booking_recency"),
    ("average_covers_per_booking_norm", "min_max", "average_covers_per_booking"),
    ("seasonal_trend", "raw", "seasonal_trend"),
)

FEATURE_LAYOUT = tuple(name for name, _, _ in FEATURE_SPEC)
INPUT_COLUMNS = tuple(dict.fromkeys(column for _, _, column in FEATURE_SPEC))


def _log_mean_variance() -> Pipeline:
    """log1p, standardize on fitted mean/variance, then squash through the normal CDF."""

    return Pipeline(
        steps=[
            ("log", FunctionTransformer(np.log1p, feature_names_out="one-to-one")),
            ("scale", StandardScaler()),
            ("cdf", FunctionTransformer(ndtr, feature_names_out="one-to-one")),
        ]
    )


def _transformer_for(kind: str):
    if kind == "raw":
        return "passthrough"
    if kind == "min_max":
        return MinMaxScaler()
    if kind == "one_hot":
        return OneHotEncoder(handle_unknown="ignore", sparse_output=False)
    if kind == "log_mean_variance":
        return _log_mean_variance()
    raise ValueError(f"unknown feature kind: {kind}")


def build_preprocessor() -> ColumnTransformer:
    """Build the unfitted transform chain that produces the Features vector.

    Every normalizer and encoder learns its statistics from the rows passed
    to ``fit`` and applies them unchanged to anything transformed later.
    """

    return ColumnTransformer(
        transformers=[
            (name, _transformer_for(kind), [column])
            for name, kind, column in FEATURE_SPEC
        ],
        remainder="drop",
        sparse_threshold=0.0,
    )


def build_classifier(config: TrainingConfig) -> HistGradientBoostingClassifier:
    return HistGradientBoostingClassifier(
        max_leaf_nodes=config.num_leaves,
        min_samples_leaf=config.min_leaf_examples,
        learning_rate=config.learning_rate,
        max_iter=config.num_trees,
        early_stopping=False,
        random_state=config.model_random_state,
    )


def build_training_pipeline(config: TrainingConfig) -> Pipeline:
    return Pipeline(
        steps=[
            ("features", build_preprocessor()),
            ("classifier", build_classifier(config)),
        ]
    )
