"""Exception hierarchy shared by the workflow stages."""

from __future__ import annotations


class TableRecommendationError(Exception):
    """Base exception for training workflow failures."""


class GenerationError(TableRecommendationError):
    """Raised when synthetic data cannot be produced."""


class TrainingError(TableRecommendationError):
    """Raised when the pipeline cannot be fit."""


class EvaluationError(TableRecommendationError):
    """Raised when metrics or cross-validation cannot be computed."""


class PersistenceError(TableRecommendationError):
    """Raised when the model artifact cannot be written or read."""


class MonitoringError(TableRecommendationError):
    """Raised when local logs or the tracking endpoint cannot be written."""
