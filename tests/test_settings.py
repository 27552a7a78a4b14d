from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.exceptions import ConfigurationError
from core.pipeline_config import AnalysisConfig
from core.settings import DEFAULT_CONFIG_PATH, Settings


@pytest.fixture(autouse=True)
def _no_config_override(monkeypatch):
    monkeypatch.delenv("WALLVIZ_CONFIG", raising=False)


def test_defaults():
    settings = Settings()

    assert settings.analysis.edge_threshold == 100
    assert settings.analysis.confidence_threshold == 0.3
    assert settings.analysis.max_walk == 200
    assert settings.image.supported_formats == ["jpg", "jpeg", "png", "webp"]
    assert settings.api.processing_timeout_seconds == 30.0


def test_bundled_config_matches_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    assert Settings.load() == Settings()


def test_load_partial_yaml(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "analysis:\n  edge_threshold: 80\n  kmeans_iterations: 5\n"
        "image:\n  supported_formats: PNG, .Jpg\n",
        encoding="utf-8",
    )
    settings = Settings.load(path)

    assert settings.analysis.edge_threshold == 80
    assert settings.analysis.kmeans_iterations == 5
    assert settings.analysis.grid_step == 50
    assert settings.image.supported_formats == ["png", "jpg"]


def test_env_variable_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("api:\n  requests_per_minute: 5\n", encoding="utf-8")
    monkeypatch.setenv("WALLVIZ_CONFIG", str(path))

    assert Settings.load().api.requests_per_minute == 5


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Settings.load(tmp_path / "absent.yaml")


def test_invalid_values_are_configuration_errors(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("analysis:\n  confidence_threshold: 1.5\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        Settings.load(path)
    assert excinfo.value.details["path"] == str(path)


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        Settings.load(path)


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert Settings.load(path) == Settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"brightness_min": 200.0, "brightness_max": 50.0},
        {"depth_fill": 2.0},
        {"fallback_width_ratio": 0.01},
        {"default_color_count": 0},
    ],
)
def test_analysis_config_rejects_inconsistent_values(overrides):
    with pytest.raises(ValidationError):
        AnalysisConfig(**overrides)
