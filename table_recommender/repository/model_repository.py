"""Repository layer responsible for model artifact storage."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import joblib
from sklearn.pipeline import Pipeline

from table_recommender.domain.models import ModelMetadata
from table_recommender.services.errors import PersistenceError
from table_recommender.utils.config import Settings, get_settings
from table_recommender.utils.logger import get_logger


logger = get_logger(__name__)

_ARTIFACT_KEYS = ("pipeline", "schema", "metadata")


@dataclass(frozen=True)
class StoredModel:
    """Loaded artifact: fitted pipeline plus the input schema it was fit on."""

    pipeline: Pipeline
    schema: dict[str, str]
    metadata: dict[str, Any]


class ModelRepository:
    """Encapsulates joblib persistence so the trainer stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    @property
    def default_path(self) -> Path:
        return Path(self._settings.model_artifact_path)

    def save(
        self,
        pipeline: Pipeline,
        schema: dict[str, str],
        metadata: ModelMetadata,
        path: Optional[Path] = None,
    ) -> Path:
        target = Path(path) if path is not None else self.default_path
        payload = {
            "pipeline": pipeline,
            "schema": dict(schema),
            "metadata": metadata.to_dict(),
        }
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            joblib.dump(payload, target)
        except OSError as exc:
            raise PersistenceError(f"could not write model artifact to {target}: {exc}") from exc

        logger.info(
            "Model artifact saved | path=%s | version=%s | columns=%s",
            target,
            metadata.model_version,
            len(schema),
        )
        return target

    def load(self, path: Optional[Path] = None) -> StoredModel:
        target = Path(path) if path is not None else self.default_path
        if not target.exists():
            raise PersistenceError(f"model artifact not found: {target}")
        try:
            payload = joblib.load(target)
        except Exception as exc:
            raise PersistenceError(f"could not read model artifact {target}: {exc}") from exc

        if not isinstance(payload, dict) or any(key not in payload for key in _ARTIFACT_KEYS):
            raise PersistenceError(f"model artifact {target} is missing required sections")

        logger.info("Model artifact loaded | path=%s", target)
        return StoredModel(
            pipeline=payload["pipeline"],
            schema=dict(payload["schema"]),
            metadata=dict(payload["metadata"]),
        )
