"""Local audit logs and remote metric tracking for training runs."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import requests

from table_recommender.services.errors import MonitoringError
from table_recommender.utils.config import Settings, get_settings
from table_recommender.utils.logger import get_logger


logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _append_record(path: Path, record: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")
    except OSError as exc:
        raise MonitoringError(f"could not append to {path}: {exc}") from exc


class ModelMonitoring:
    """Append-only JSON-lines audit trail for metrics and mispredictions."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    @property
    def metrics_log_path(self) -> Path:
        return Path(self._settings.metrics_log_path)

    @property
    def prediction_error_log_path(self) -> Path:
        return Path(self._settings.prediction_error_log_path)

    def log_model_metrics(self, accuracy: float, auc: float, f1_score: float) -> None:
        _append_record(
            self.metrics_log_path,
            {
                "timestamp": _timestamp(),
                "event": "model_metrics",
                "metrics": {
                    "accuracy": float(accuracy),
                    "auc": float(auc),
                    "f1_score": float(f1_score),
                },
            },
        )
        logger.info(
            "Model metrics logged | accuracy=%.4f | auc=%.4f | f1_score=%.4f",
            accuracy,
            auc,
            f1_score,
        )

    def log_prediction_error(self, booking_id: str, predicted: bool, actual: bool) -> bool:
        """Record a misprediction; returns False without writing when they agree."""

        if bool(predicted) == bool(actual):
            return False
        _append_record(
            self.prediction_error_log_path,
            {
                "timestamp": _timestamp(),
                "event": "prediction_error",
                "booking_id": booking_id,
                "predicted": bool(predicted),
                "actual": bool(actual),
            },
        )
        return True

    def log_workflow_error(self, stage: str, message: str) -> None:
        _append_record(
            self.prediction_error_log_path,
            {
                "timestamp": _timestamp(),
                "event": "workflow_error",
                "booking_id": "unknown",
                "stage": stage,
                "message": message,
            },
        )


class MLflowLogger:
    """Posts run metrics to an MLflow-style ``log-metric`` endpoint."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def build_payload(self, accuracy: float, auc: float, f1_score: float) -> dict[str, Any]:
        return {
            "run_id": self._settings.tracking_run_id,
            "metrics": [
                {"key": "accuracy", "value": float(accuracy)},
                {"key": "auc", "value": float(auc)},
                {"key": "f1_score", "value": float(f1_score)},
            ],
        }

    def log_metrics(self, accuracy: float, auc: float, f1_score: float) -> None:
        """Single fire-and-forget POST; the response body and status are ignored."""

        payload = self.build_payload(accuracy, auc, f1_score)
        try:
            requests.post(
                self._settings.tracking_url,
                json=payload,
                timeout=self._settings.tracking_timeout_seconds,
            )
        except requests.exceptions.RequestException as exc:
            raise MonitoringError(
                f"metrics POST to {self._settings.tracking_url} failed: {exc}"
            ) from exc
        logger.info(
            "Remote metrics posted | url=%s | run_id=%s",
            self._settings.tracking_url,
            self._settings.tracking_run_id,
        )
