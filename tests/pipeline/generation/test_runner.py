"""Tests for logging configuration and the synchronous run entrypoint."""

import logging
from pathlib import Path

import onepager.pipeline.generation.runner as runner
from onepager.settings import GeneratorSettings


class EchoRenderer:
    def render(self, template, context, destination):
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(context.get("<<NOM CLIENT>>", ""), encoding="utf-8")
        return destination


def test_configure_logging_without_file(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(runner, "LOG_DIR", tmp_path / "logs")
    runner.configure_logging("DEBUG", enable_file=False)
    assert logging.getLogger().level == logging.DEBUG
    assert not (tmp_path / "logs").exists()
    assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


def test_configure_logging_with_file(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(runner, "LOG_DIR", tmp_path / "logs")
    runner.configure_logging("INFO", enable_file=True)
    try:
        logging.getLogger("onepager.test").info("hello")
        handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.FileHandler) for h in handlers)
        assert (tmp_path / "logs" / runner.LOG_FILENAME_GENERATE).exists()
    finally:
        for handler in logging.getLogger().handlers[:]:
            handler.close()
            logging.getLogger().removeHandler(handler)


def test_run_from_config_success(scenario_csv, template_root, tmp_path: Path):
    events = []
    stats = runner.run_from_config(
        template_root=template_root,
        output_root=tmp_path / "out",
        languages=["FR", "EN"],
        primary_csv=scenario_csv,
        renderer=EchoRenderer(),
        settings=GeneratorSettings(timestamped_output=False),
        listener=events.append,
    )
    assert stats is not None
    assert stats.success_count == 2
    assert [e.percent for e in events] == [50.0, 100.0]
    written = tmp_path / "out" / "FR" / "Acme_000" / "01-01-2026_000_Acme_onepager.pptx"
    assert written.read_text(encoding="utf-8") == "Acme"


def test_run_from_config_returns_none_on_configuration_error(template_root, tmp_path, caplog):
    stats = runner.run_from_config(
        template_root=template_root,
        output_root=tmp_path / "out",
        languages=["FR"],
        primary_csv=tmp_path / "missing.csv",
    )
    assert stats is None
    assert "Generation not started" in caplog.text
