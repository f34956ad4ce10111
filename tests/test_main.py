from __future__ import annotations

from dataclasses import replace

import requests

import main as entrypoint
from table_recommender.services import monitoring_service
from table_recommender.utils.config import get_settings


def _build_test_settings(tmp_path, **overrides):
    base = get_settings()
    return replace(
        base,
        synthetic_row_count=100,
        synthetic_random_seed=5,
        gbt_num_trees=20,
        model_artifact_path=tmp_path / "model.joblib",
        metrics_log_path=tmp_path / "metrics_log.jsonl",
        prediction_error_log_path=tmp_path / "prediction_errors.jsonl",
        tracking_url="http://tracking.test/api/2.0/mlflow/runs/log-metric",
        tracking_enabled=True,
        **overrides,
    )


def _use_settings(monkeypatch, settings) -> None:
    monkeypatch.setattr(entrypoint, "get_settings", lambda: settings)


def test_successful_run_prints_test_and_cross_validation_summary(
    tmp_path, monkeypatch, capsys
) -> None:
    settings = _build_test_settings(tmp_path)
    _use_settings(monkeypatch, settings)
    posts = []
    monkeypatch.setattr(
        monitoring_service.requests,
        "post",
        lambda url, json=None, timeout=None: posts.append(json),
    )

    exit_code = entrypoint.main()

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Synthetic rows : 100" in out
    assert "Accuracy: " in out
    assert "Positive recall: " in out
    assert "Cross-validation accuracy: " in out
    assert "Cross-validation F1 Score: " in out
    assert "An error occurred" not in out
    assert len(posts) == 1
    assert settings.model_artifact_path.exists()


def test_tracking_failure_still_prints_metrics_and_exits_cleanly(
    tmp_path, monkeypatch, capsys
) -> None:
    settings = _build_test_settings(tmp_path)
    _use_settings(monkeypatch, settings)

    def failing_post(url, json=None, timeout=None):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(monitoring_service.requests, "post", failing_post)

    exit_code = entrypoint.main()

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Accuracy: " in out
    assert "Cross-validation AUC: " in out
    assert "An error occurred during monitoring: " in out
    assert "refused" in out
    assert out.index("Accuracy: ") < out.index("An error occurred during monitoring")
    assert settings.model_artifact_path.exists()


def test_invalid_training_config_is_reported_not_raised(tmp_path, monkeypatch, capsys) -> None:
    _use_settings(monkeypatch, _build_test_settings(tmp_path, test_fraction=1.0))

    exit_code = entrypoint.main()

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "An error occurred during configuration: test_fraction must be in (0, 1)" in out
    assert "Accuracy: " not in out


def test_malformed_environment_value_is_reported_not_raised(monkeypatch, capsys) -> None:
    monkeypatch.setenv("TABLEREC_GBT_NUM_TREES", "many")
    get_settings.cache_clear()
    try:
        exit_code = entrypoint.main()
    finally:
        monkeypatch.delenv("TABLEREC_GBT_NUM_TREES")
        get_settings.cache_clear()

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "An error occurred during configuration: " in out
    assert "many" in out
