from __future__ import annotations

import random
from dataclasses import replace

import pandas as pd
import pytest

from table_recommender.domain.models import average_metrics, records_to_frame
from table_recommender.repository.model_repository import ModelRepository
from table_recommender.services.data_generator import generate_synthetic_bookings
from table_recommender.services.errors import EvaluationError, PersistenceError, TrainingError
from table_recommender.services.training_service import (
    TableRecommendationTrainer,
    frame_schema,
)
from table_recommender.utils.config import get_settings


def _build_test_settings(tmp_path, **overrides):
    base = get_settings()
    return replace(
        base,
        gbt_num_trees=20,
        model_artifact_path=tmp_path / "model.joblib",
        **overrides,
    )


def _booking_frame(rows: int, seed: int = 42) -> pd.DataFrame:
    return records_to_frame(generate_synthetic_bookings(rows, rng=random.Random(seed)))


def test_trainer_uses_reference_hyperparameters_by_default() -> None:
    trainer = TableRecommendationTrainer(settings=get_settings())
    classifier = trainer.build_pipeline().named_steps["classifier"]

    assert classifier.max_leaf_nodes == 20
    assert classifier.min_samples_leaf == 10
    assert classifier.learning_rate == 0.05
    assert classifier.max_iter == 200
    assert classifier.early_stopping is False


def test_split_uses_configured_test_fraction(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, test = trainer.split(_booking_frame(100))

    assert len(train) == 80
    assert len(test) == 20


def test_fit_produces_model_that_scores_held_out_rows(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, test = trainer.split(_booking_frame(100))

    model = trainer.fit(train)
    predictions = trainer.predict(model, test)

    assert len(predictions) == len(test)
    assert set(predictions).issubset({True, False})


def test_fit_rejects_empty_training_data(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))

    with pytest.raises(TrainingError):
        trainer.fit(_booking_frame(0))


def test_fit_rejects_single_class_training_data(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    frame = _booking_frame(100)
    positives = frame[frame["label"]].reset_index(drop=True)

    with pytest.raises(TrainingError):
        trainer.fit(positives)


def test_evaluate_returns_bounded_metrics(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, test = trainer.split(_booking_frame(100))

    metrics = trainer.evaluate(trainer.fit(train), test)

    for value in metrics.to_dict().values():
        assert 0.0 <= value <= 1.0


def test_evaluate_rejects_empty_data(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, _ = trainer.split(_booking_frame(100))
    model = trainer.fit(train)

    with pytest.raises(EvaluationError):
        trainer.evaluate(model, train.head(0))


def test_single_class_evaluation_reports_neutral_auc(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, test = trainer.split(_booking_frame(100))
    model = trainer.fit(train)
    negatives = test[~test["label"]].reset_index(drop=True)
    if negatives.empty:
        negatives = train[~train["label"]].head(5).reset_index(drop=True)

    metrics = trainer.evaluate(model, negatives)

    assert metrics.auc == 0.5


def test_same_seeded_scenario_yields_identical_metrics(tmp_path) -> None:
    settings = _build_test_settings(tmp_path)

    def run_once():
        trainer = TableRecommendationTrainer(settings=settings)
        train, test = trainer.split(_booking_frame(100, seed=7))
        return trainer.evaluate(trainer.fit(train), test)

    first = run_once()
    second = run_once()

    assert first == second
    assert 0.0 <= first.accuracy <= 1.0
    assert 0.0 <= first.auc <= 1.0


def test_cross_validation_returns_one_result_per_fold(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    results = trainer.cross_validate(_booking_frame(60), folds=5)

    assert len(results) == 5
    assert [result.fold for result in results] == [0, 1, 2, 3, 4]
    assert sum(result.test_rows for result in results) == 60

    average = average_metrics(results)
    expected = sum(result.metrics.accuracy for result in results) / 5
    assert average.accuracy == pytest.approx(expected, abs=1e-6)


def test_cross_validation_rejects_too_few_folds(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))

    with pytest.raises(EvaluationError):
        trainer.cross_validate(_booking_frame(60), folds=1)


def test_cross_validation_rejects_more_folds_than_rows(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))

    with pytest.raises(EvaluationError):
        trainer.cross_validate(_booking_frame(3), folds=5)


def test_persisted_model_reloads_with_schema_and_metadata(tmp_path) -> None:
    settings = _build_test_settings(tmp_path)
    trainer = TableRecommendationTrainer(settings=settings)
    train, test = trainer.split(_booking_frame(100))
    model = trainer.fit(train)
    metadata = trainer.build_metadata(training_rows=len(train))

    path = trainer.persist(model, frame_schema(train), metadata=metadata)
    stored = ModelRepository(settings).load(path)

    assert path == settings.model_artifact_path
    assert set(stored.schema) == set(train.columns)
    assert stored.schema["label"] == "bool"
    assert stored.metadata["training_rows"] == 80
    assert stored.metadata["model_type"] == "hist_gradient_boosting"
    assert stored.metadata["feature_columns"][0] == "is_vip"
    assert list(trainer.predict(stored.pipeline, test)) == list(trainer.predict(model, test))


def test_persist_rejects_empty_schema(tmp_path) -> None:
    trainer = TableRecommendationTrainer(settings=_build_test_settings(tmp_path))
    train, _ = trainer.split(_booking_frame(100))

    with pytest.raises(PersistenceError):
        trainer.persist(
            trainer.fit(train),
            {},
            trainer.build_metadata(training_rows=len(train)),
        )


def test_persist_rejects_metadata_without_training_rows(tmp_path) -> None:
    settings = _build_test_settings(tmp_path)
    trainer = TableRecommendationTrainer(settings=settings)
    train, _ = trainer.split(_booking_frame(100))

    with pytest.raises(PersistenceError):
        trainer.persist(
            trainer.fit(train),
            frame_schema(train),
            trainer.build_metadata(training_rows=0),
        )
    assert not settings.model_artifact_path.exists()


def test_load_missing_artifact_raises(tmp_path) -> None:
    repository = ModelRepository(_build_test_settings(tmp_path))

    with pytest.raises(PersistenceError):
        repository.load(tmp_path / "missing.joblib")


def test_invalid_configuration_is_rejected(tmp_path) -> None:
    with pytest.raises(ValueError):
        TableRecommendationTrainer(settings=_build_test_settings(tmp_path, test_fraction=1.0))
