from __future__ import annotations

import logging
from dataclasses import dataclass

import lingualine.main as cli
from lingualine import __version__
from lingualine.config.settings import TranslationProviderName
from lingualine.domain.models import Translation


@dataclass
class FakeRunner:
    settings: object
    providers: object | None = None
    last_settings = None
    last_providers = None

    async def run(self) -> int:
        FakeRunner.last_settings = self.settings
        FakeRunner.last_providers = self.providers
        return 0


@dataclass
class EchoProvider:
    closed: bool = False

    async def translate(self, *, item_id, text, system_prompt, source_language, target_language, context=""):
        return Translation(item_id=item_id, text=f"{target_language}:{text}")

    async def close(self) -> None:
        self.closed = True


def _args(tmp_path, *rest: str) -> list[str]:
    return ["--config", str(tmp_path / "settings.json"), *rest]


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_run_stdin_wires_providers(monkeypatch, tmp_path):
    providers = {TranslationProviderName.MOCK: object()}
    monkeypatch.setattr(cli, "HeadlessStdinRunner", FakeRunner)
    monkeypatch.setattr(cli, "create_secret_store", lambda *_a, **_k: object())
    monkeypatch.setattr(cli, "create_translation_providers", lambda *_a, **_k: providers)

    code = cli.main(_args(tmp_path, "--provider", "mock", "run-stdin"))

    assert code == 0
    assert FakeRunner.last_providers is providers
    assert FakeRunner.last_settings.provider.translation == TranslationProviderName.MOCK


def test_run_stdin_returns_error_on_init_failure(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "HeadlessStdinRunner", FakeRunner)
    monkeypatch.setattr(cli, "create_secret_store", lambda *_a, **_k: object())
    monkeypatch.setattr("builtins.print", lambda *_a, **_k: None)

    def _boom(*_a, **_k):
        raise ValueError("missing secret")

    monkeypatch.setattr(cli, "create_translation_providers", _boom)

    code = cli.main(_args(tmp_path, "run-stdin"))
    assert code == 2


def test_translate_prints_result(monkeypatch, tmp_path, capsys):
    provider = EchoProvider()
    monkeypatch.setattr(cli, "create_secret_store", lambda *_a, **_k: object())
    monkeypatch.setattr(cli, "create_translation_provider", lambda *_a, **_k: provider)

    code = cli.main(_args(tmp_path, "--target", "fr-FR", "translate", "Hola"))

    assert code == 0
    assert capsys.readouterr().out.strip() == "fr-FR:Hola"
    assert provider.closed is True


def test_invalid_language_override_is_rejected(tmp_path, capsys):
    code = cli.main(_args(tmp_path, "--source", "xx-YY", "translate", "Hola"))
    assert code == 2
    assert "invalid settings" in capsys.readouterr().out


def test_list_languages(capsys):
    assert cli.main(["list-languages"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "es\tSpanish" in lines
    assert "en\tEnglish" in lines


def test_configure_logging_adds_rotating_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "lingualine.log"
    try:
        cli.configure_logging("DEBUG", log_file)
        root = logging.getLogger()
        rotating = [h for h in root.handlers if isinstance(h, cli.RotatingFileHandler)]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == cli.LOG_MAX_BYTES
        assert rotating[0].backupCount == cli.LOG_BACKUP_COUNT
        assert root.level == logging.DEBUG

        logging.getLogger("lingualine.test").info("[Test] hello file")
        rotating[0].flush()
        assert "[Test] hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logging.getLogger().handlers):
            if isinstance(handler, cli.RotatingFileHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()
        logging.getLogger().setLevel(logging.WARNING)
