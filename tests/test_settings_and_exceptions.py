"""Tests for runtime settings and the application error hierarchy."""

import os

import pytest

import onepager.config as cfg
from onepager.exceptions import (
    AppError,
    ConfigurationError,
    DataValidationError,
    MappingRuleError,
    RenderError,
    RunInProgressError,
)
from onepager.settings import GeneratorSettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.setattr(cfg, "ENV_FILE", tmp_path / ".env")
    for name in (
        "ONEPAGER_MAX_WORKERS",
        "ONEPAGER_TEMPLATE_EXTENSION",
        "ONEPAGER_JOIN_KEY",
        "ONEPAGER_TIMESTAMPED_OUTPUT",
        "ONEPAGER_DATE_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = GeneratorSettings()
    assert settings.max_workers == cfg.DEFAULT_MAX_WORKERS
    assert settings.template_extension == ".pptx"
    assert settings.join_key == cfg.CLIENT_NAME_COLUMN
    assert settings.timestamped_output is True
    assert settings.date_format == cfg.DEFAULT_DATE_FORMAT
    assert "max_workers=4" in repr(settings)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ONEPAGER_MAX_WORKERS", "8")
    monkeypatch.setenv("ONEPAGER_TEMPLATE_EXTENSION", "POTX")
    monkeypatch.setenv("ONEPAGER_TIMESTAMPED_OUTPUT", "no")
    settings = GeneratorSettings()
    assert settings.max_workers == 8
    assert settings.template_extension == ".potx"
    assert settings.timestamped_output is False


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("ONEPAGER_JOIN_KEY=Org ID\n", encoding="utf-8")
    try:
        assert GeneratorSettings().join_key == "Org ID"
    finally:
        os.environ.pop("ONEPAGER_JOIN_KEY", None)


def test_explicit_arguments_win(monkeypatch):
    monkeypatch.setenv("ONEPAGER_MAX_WORKERS", "8")
    assert GeneratorSettings(max_workers=1).max_workers == 1


@pytest.mark.parametrize(
    "name, value",
    [
        ("ONEPAGER_MAX_WORKERS", "many"),
        ("ONEPAGER_MAX_WORKERS", "0"),
        ("ONEPAGER_TIMESTAMPED_OUTPUT", "maybe"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        GeneratorSettings()


def test_app_error_representation():
    error = ConfigurationError("bad path", context={"path": "/x"})
    assert isinstance(error, AppError)
    assert str(error) == "CONFIGURATION_ERROR: bad path"
    assert error.to_dict() == {
        "error_code": "CONFIGURATION_ERROR",
        "message": "bad path",
        "context": {"path": "/x"},
        "is_transient": False,
    }


def test_error_codes_and_hierarchy():
    assert issubclass(MappingRuleError, DataValidationError)
    assert MappingRuleError("x").code == "MAPPING_RULE_ERROR"
    assert RenderError("x").code == "RENDER_ERROR"
    busy = RunInProgressError()
    assert busy.message == "run already in progress"
    assert busy.transient is True
