#!/usr/bin/env python3
"""Validate local training environment readiness."""

from __future__ import annotations

import importlib
import random
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from table_recommender.domain.models import records_to_frame
from table_recommender.repository.model_repository import ModelRepository
from table_recommender.services.data_generator import generate_synthetic_bookings
from table_recommender.services.training_service import (
    TableRecommendationTrainer,
    frame_schema,
)
from table_recommender.utils.config import get_settings

SEPARATOR_LINE = "=" * 44
VALIDATION_ROWS = 300


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="tablerec-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("scipy", "scipy"),
        ("sklearn", "scikit-learn"),
        ("joblib", "joblib"),
        ("requests", "requests"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{dist_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        settings = replace(
            get_settings(),
            model_artifact_path=Path(temp_dir) / "validation_model.joblib",
            gbt_num_trees=20,
        )
        trainer = TableRecommendationTrainer(settings=settings)
        repository = ModelRepository(settings)

        # CHECK 3: Synthetic data generation
        frame = None
        try:
            records = generate_synthetic_bookings(VALIDATION_ROWS, rng=random.Random(7))
            if len(records) != VALIDATION_ROWS:
                raise RuntimeError(f"expected {VALIDATION_ROWS} rows, got {len(records)}")
            frame = records_to_frame(records)
            ok, line = _print_result(f"Synthetic dataset: {VALIDATION_ROWS} rows", True)
        except Exception as exc:
            ok, line = _print_result("Synthetic dataset", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Training and evaluation
        model = None
        train = None
        if frame is not None:
            try:
                train, test = trainer.split(frame)
                model = trainer.fit(train)
                metrics = trainer.evaluate(model, test)
                ok, line = _print_result(
                    "Model training",
                    True,
                    f": accuracy={metrics.accuracy:.4f} auc={metrics.auc:.4f}",
                )
            except Exception as exc:
                ok, line = _print_result("Model training", False, str(exc))
            results.append(line)
            all_passed = all_passed and ok

        # CHECK 5: Artifact round trip
        if model is not None and train is not None:
            try:
                path = trainer.persist(
                    model,
                    frame_schema(train),
                    trainer.build_metadata(training_rows=len(train)),
                )
                stored = repository.load(path)
                trainer.predict(stored.pipeline, train.head(5))
                ok, line = _print_result("Model artifact save/load", True)
            except Exception as exc:
                ok, line = _print_result("Model artifact save/load", False, str(exc))
            results.append(line)
            all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Table Recommendation Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
