"""Training and evaluation of the table recommendation classifier."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
)
from sklearn.model_selection import KFold, train_test_split
from sklearn.pipeline import Pipeline

from table_recommender.domain.constraints import TrainingConfig, validate_training_config
from table_recommender.domain.models import (
    LABEL_COLUMN,
    WEIGHT_COLUMN,
    CrossValidationResult,
    EvaluationMetrics,
    ModelMetadata,
)
from table_recommender.repository.model_repository import ModelRepository
from table_recommender.services.errors import EvaluationError, PersistenceError, TrainingError
from table_recommender.services.feature_pipeline import (
    FEATURE_LAYOUT,
    INPUT_COLUMNS,
    build_training_pipeline,
)
from table_recommender.utils.config import Settings, get_settings
from table_recommender.utils.logger import get_logger


logger = get_logger(__name__)

MODEL_TYPE = "hist_gradient_boosting"


def frame_schema(frame: pd.DataFrame) -> dict[str, str]:
    """Column name -> dtype string, in column order."""
    return {str(column): str(dtype) for column, dtype in frame.dtypes.items()}


def _labels(frame: pd.DataFrame) -> np.ndarray:
    return frame[LABEL_COLUMN].astype(int).to_numpy()


class TableRecommendationTrainer:
    """Splits, fits, evaluates and persists the boosted-tree pipeline."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        repository: Optional[ModelRepository] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = TrainingConfig.from_settings(self._settings)
        validate_training_config(self._config)
        self._repository = repository or ModelRepository(self._settings)

    @property
    def config(self) -> TrainingConfig:
        return self._config

    def build_pipeline(self) -> Pipeline:
        return build_training_pipeline(self._config)

    def split(
        self,
        frame: pd.DataFrame,
        test_fraction: Optional[float] = None,
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        fraction = self._config.test_fraction if test_fraction is None else test_fraction
        try:
            train, test = train_test_split(
                frame,
                test_size=fraction,
                random_state=self._config.split_random_state,
                shuffle=True,
            )
        except ValueError as exc:
            raise TrainingError(f"could not split {len(frame)} rows: {exc}") from exc

        logger.info(
            "Train/test split | train_rows=%s | test_rows=%s | test_fraction=%.2f",
            len(train),
            len(test),
            fraction,
        )
        return train.reset_index(drop=True), test.reset_index(drop=True)

    def fit(self, train: pd.DataFrame, pipeline: Optional[Pipeline] = None) -> Pipeline:
        if train.empty:
            raise TrainingError("training data is empty")
        y_train = _labels(train)
        if len(np.unique(y_train)) < 2:
            raise TrainingError("training labels must contain both classes")

        model = clone(pipeline) if pipeline is not None else self.build_pipeline()
        try:
            model.fit(
                train[list(INPUT_COLUMNS)],
                y_train,
                classifier__sample_weight=train[WEIGHT_COLUMN].astype(float).to_numpy(),
            )
        except ValueError as exc:
            raise TrainingError(f"pipeline fit failed: {exc}") from exc

        logger.info(
            "Pipeline fitted | rows=%s | leaves=%s | min_leaf=%s | learning_rate=%s | trees=%s",
            len(train),
            self._config.num_leaves,
            self._config.min_leaf_examples,
            self._config.learning_rate,
            self._config.num_trees,
        )
        return model

    def predict(self, model: Pipeline, frame: pd.DataFrame) -> np.ndarray:
        return model.predict(frame[list(INPUT_COLUMNS)]).astype(bool)

    def evaluate(self, model: Pipeline, test: pd.DataFrame) -> EvaluationMetrics:
        if test.empty:
            raise EvaluationError("evaluation data is empty")

        y_true = _labels(test)
        features = test[list(INPUT_COLUMNS)]
        try:
            y_pred = model.predict(features).astype(int)
            positive_index = list(model.classes_).index(1)
            y_score = model.predict_proba(features)[:, positive_index]
        except ValueError as exc:
            raise EvaluationError(f"model could not score evaluation data: {exc}") from exc

        if len(np.unique(y_true)) < 2:
            logger.warning(
                "Evaluation labels contain a single class; reporting AUC as 0.5 | rows=%s",
                len(test),
            )
            auc = 0.5
        else:
            auc = float(roc_auc_score(y_true, y_score))

        return EvaluationMetrics(
            accuracy=float(accuracy_score(y_true, y_pred)),
            auc=auc,
            f1_score=float(f1_score(y_true, y_pred, zero_division=0)),
            positive_precision=float(precision_score(y_true, y_pred, zero_division=0)),
            positive_recall=float(recall_score(y_true, y_pred, zero_division=0)),
        )

    def cross_validate(
        self,
        frame: pd.DataFrame,
        folds: Optional[int] = None,
    ) -> list[CrossValidationResult]:
        """Refit a fresh pipeline on each fold, one fold at a time."""

        n_folds = self._config.cross_validation_folds if folds is None else folds
        if n_folds < 2:
            raise EvaluationError("cross-validation needs at least 2 folds")
        if n_folds > len(frame):
            raise EvaluationError(
                f"cannot build {n_folds} folds from {len(frame)} rows"
            )

        splitter = KFold(
            n_splits=n_folds,
            shuffle=True,
            random_state=self._config.split_random_state,
        )
        results: list[CrossValidationResult] = []
        for fold, (train_idx, test_idx) in enumerate(splitter.split(frame)):
            fold_train = frame.iloc[train_idx].reset_index(drop=True)
            fold_test = frame.iloc[test_idx].reset_index(drop=True)
            model = self.fit(fold_train)
            metrics = self.evaluate(model, fold_test)
            results.append(
                CrossValidationResult(
                    fold=fold,
                    metrics=metrics,
                    train_rows=len(fold_train),
                    test_rows=len(fold_test),
                )
            )
            logger.info(
                "Cross-validation fold complete | fold=%s | accuracy=%.4f | auc=%.4f | f1=%.4f",
                fold,
                metrics.accuracy,
                metrics.auc,
                metrics.f1_score,
            )
        return results

    def build_metadata(self, training_rows: int) -> ModelMetadata:
        return ModelMetadata(
            model_type=MODEL_TYPE,
            model_version=self._settings.model_version,
            trained_at=datetime.now(timezone.utc).isoformat(),
            training_rows=training_rows,
            feature_columns=FEATURE_LAYOUT,
        )

    def persist(
        self,
        model: Pipeline,
        schema: dict[str, str],
        metadata: ModelMetadata,
        path: Optional[Path] = None,
    ) -> Path:
        if not schema:
            raise PersistenceError("schema must describe at least one column")
        if metadata.training_rows <= 0:
            raise PersistenceError("metadata must record the number of training rows")
        return self._repository.save(model, schema, metadata, path=path)
