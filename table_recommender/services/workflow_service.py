"""End-to-end training run: generate, fit, evaluate, persist, report."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, TypeVar

import pandas as pd
from sklearn.pipeline import Pipeline

from table_recommender.domain.models import (
    CrossValidationResult,
    EvaluationMetrics,
    ModelMetadata,
    average_metrics,
    records_to_frame,
)
from table_recommender.services.data_generator import generate_synthetic_bookings
from table_recommender.services.errors import MonitoringError
from table_recommender.services.monitoring_service import MLflowLogger, ModelMonitoring
from table_recommender.services.training_service import (
    TableRecommendationTrainer,
    frame_schema,
)
from table_recommender.utils.config import Settings, get_settings
from table_recommender.utils.logger import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

STAGE_CONFIGURATION = "configuration"
STAGE_GENERATION = "generation"
STAGE_SPLIT = "split"
STAGE_TRAINING = "training"
STAGE_EVALUATION = "evaluation"
STAGE_CROSS_VALIDATION = "cross_validation"
STAGE_PERSISTENCE = "persistence"
STAGE_MONITORING = "monitoring"


class _StageFailed(Exception):
    pass


@dataclass(frozen=True)
class StageResult:
    stage: str
    ok: bool
    error: Optional[BaseException] = None

    @property
    def message(self) -> str:
        return "" if self.error is None else str(self.error)


@dataclass(frozen=True)
class TrainingReport:
    test_metrics: EvaluationMetrics
    cross_validation: list[CrossValidationResult]
    cross_validation_average: EvaluationMetrics
    metadata: ModelMetadata
    artifact_path: Path


@dataclass
class WorkflowResult:
    stages: list[StageResult] = field(default_factory=list)
    report: Optional[TrainingReport] = None

    @property
    def ok(self) -> bool:
        return self.report is not None and all(stage.ok for stage in self.stages)

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for stage in self.stages:
            if not stage.ok:
                return stage
        return None


class TrainingWorkflow:
    """Runs each stage in order and records its outcome instead of raising."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        trainer: Optional[TableRecommendationTrainer] = None,
        monitoring: Optional[ModelMonitoring] = None,
        tracker: Optional[MLflowLogger] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._trainer = trainer
        self._monitoring = monitoring or ModelMonitoring(settings=self._settings)
        self._tracker = tracker or MLflowLogger(settings=self._settings)
        if rng is None and self._settings.synthetic_random_seed is not None:
            rng = random.Random(self._settings.synthetic_random_seed)
        self._rng = rng

    def _stage(self, result: WorkflowResult, stage: str, action: Callable[[], T]) -> T:
        try:
            value = action()
        except Exception as exc:
            logger.error("Workflow stage failed | stage=%s | error=%s", stage, exc)
            result.stages.append(StageResult(stage=stage, ok=False, error=exc))
            raise _StageFailed(stage) from exc
        result.stages.append(StageResult(stage=stage, ok=True))
        return value

    def _record_failure(self, failure: StageResult) -> None:
        # Labels agree, so nothing is written here; the workflow_error line is the record.
        self._monitoring.log_prediction_error("unknown", False, False)
        try:
            self._monitoring.log_workflow_error(failure.stage, failure.message)
        except MonitoringError as exc:
            logger.error("Could not record workflow failure | error=%s", exc)

    def _log_test_mismatches(
        self,
        trainer: TableRecommendationTrainer,
        model: Pipeline,
        test: pd.DataFrame,
    ) -> int:
        predicted = trainer.predict(model, test)
        written = 0
        for booking_id, guess, actual in zip(test["booking_id"], predicted, test["label"]):
            if self._monitoring.log_prediction_error(str(booking_id), bool(guess), bool(actual)):
                written += 1
        logger.info("Test mismatches logged | rows=%s", written)
        return written

    def _report_metrics(self, metrics: EvaluationMetrics) -> None:
        self._monitoring.log_model_metrics(metrics.accuracy, metrics.auc, metrics.f1_score)
        if self._settings.tracking_enabled:
            self._tracker.log_metrics(metrics.accuracy, metrics.auc, metrics.f1_score)

    def _build_trainer(self) -> TableRecommendationTrainer:
        if self._trainer is not None:
            return self._trainer
        return TableRecommendationTrainer(settings=self._settings)

    def run(self, count: Optional[int] = None) -> WorkflowResult:
        """Run every stage; a report is kept once the model is saved, even if monitoring fails."""

        result = WorkflowResult()
        row_count = self._settings.synthetic_row_count if count is None else count
        logger.info(
            "Training workflow started | app=%s | rows=%s",
            self._settings.app_name,
            row_count,
        )
        try:
            trainer = self._stage(result, STAGE_CONFIGURATION, self._build_trainer)
            records = self._stage(
                result,
                STAGE_GENERATION,
                lambda: generate_synthetic_bookings(
                    row_count,
                    rng=self._rng,
                    settings=self._settings,
                ),
            )
            frame = records_to_frame(records)

            train, test = self._stage(result, STAGE_SPLIT, lambda: trainer.split(frame))
            model = self._stage(result, STAGE_TRAINING, lambda: trainer.fit(train))

            test_metrics = self._stage(
                result,
                STAGE_EVALUATION,
                lambda: trainer.evaluate(model, test),
            )
            folds = self._stage(
                result,
                STAGE_CROSS_VALIDATION,
                lambda: trainer.cross_validate(frame),
            )

            metadata = trainer.build_metadata(training_rows=len(train))
            artifact_path = self._stage(
                result,
                STAGE_PERSISTENCE,
                lambda: trainer.persist(model, frame_schema(train), metadata),
            )

            result.report = TrainingReport(
                test_metrics=test_metrics,
                cross_validation=folds,
                cross_validation_average=average_metrics(folds),
                metadata=metadata,
                artifact_path=artifact_path,
            )

            def _monitor() -> None:
                self._report_metrics(test_metrics)
                if self._settings.log_test_mismatches:
                    self._log_test_mismatches(trainer, model, test)

            self._stage(result, STAGE_MONITORING, _monitor)
        except _StageFailed:
            failure = result.failed_stage
            if failure is not None:
                self._record_failure(failure)
            return result

        logger.info(
            "Training workflow completed | accuracy=%.4f | auc=%.4f | f1=%.4f | artifact=%s",
            test_metrics.accuracy,
            test_metrics.auc,
            test_metrics.f1_score,
            artifact_path,
        )
        return result


def format_summary(report: TrainingReport) -> list[str]:
    test = report.test_metrics
    cv = report.cross_validation_average
    return [
        f"Accuracy: {test.accuracy:.2%}",
        f"AUC: {test.auc:.2%}",
        f"F1 Score: {test.f1_score:.2%}",
        f"Positive precision: {test.positive_precision:.2%}",
        f"Positive recall: {test.positive_recall:.2%}",
        f"Cross-validation accuracy: {cv.accuracy:.2%}",
        f"Cross-validation AUC: {cv.auc:.2%}",
        f"Cross-validation F1 Score: {cv.f1_score:.2%}",
        f"Model saved to {report.artifact_path}",
    ]
