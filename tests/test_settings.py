from pathlib import Path

import pytest

from crpt_api.errors import ConfigError
from crpt_api.settings import Settings


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CRPT_API_SIGNATURE",
        "CRPT_SIGNATURE",
        "CRPT_API_ENDPOINT",
        "CRPT_API_REQUEST_LIMIT",
        "CRPT_API_WINDOW_UNIT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_settings_load_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("CRPT_API_ENDPOINT", "https://api.example.test/documents")
    monkeypatch.setenv("CRPT_API_SIGNATURE", "env-signature")
    monkeypatch.setenv("CRPT_API_REQUEST_LIMIT", "30")
    monkeypatch.setenv("CRPT_API_WINDOW_UNIT", "minute")

    settings = Settings(_env_file=None)  # pyright: ignore[reportCallIssue]

    assert settings.endpoint == "https://api.example.test/documents"
    assert settings.signature == "env-signature"
    assert settings.request_limit == 30
    assert settings.window_s() == 60.0
    assert settings.timeout_s == 10.0
    assert settings.max_workers == 4


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    settings = Settings(_env_file=None)  # pyright: ignore[reportCallIssue]

    assert settings.endpoint == ""
    assert settings.signature == ""
    assert settings.window_unit == "second"
    assert settings.window_s() == 1.0


def test_settings_window_rejects_unknown_unit(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    settings = Settings(_env_file=None, window_unit="week")  # pyright: ignore[reportCallIssue]

    with pytest.raises(ConfigError, match="unknown window unit"):
        settings.window_s()


def _write_config(path: Path, *, signature_files: str = '["SIGNATURE.ignore"]') -> None:
    path.write_text(
        "\n".join(
            [
                "[api]",
                'endpoint = "https://api.example.test/documents"',
                "timeout_s = 4.5",
                f"signature_files = {signature_files}",
                "",
                "[rate_limit]",
                "request_limit = 5",
                'window_unit = "minute"',
                "window_amount = 2",
            ]
        )
        + "\n",
        encoding="utf-8",
    )


def test_settings_from_runtime_uses_signature_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)
    nested = tmp_path / "nested"
    nested.mkdir()
    config_path = nested / "runtime.toml"
    _write_config(config_path)
    (nested / "SIGNATURE.ignore").write_text("CRPT_API_SIGNATURE='file-signature'\n")
    monkeypatch.chdir(tmp_path)

    settings = Settings.from_runtime(config_path)

    assert settings.signature == "file-signature"
    assert settings.endpoint == "https://api.example.test/documents"
    assert settings.timeout_s == 4.5
    assert settings.request_limit == 5
    assert settings.window_s() == 120.0


def test_settings_from_runtime_prefers_env_signature(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("CRPT_SIGNATURE", "env-signature")
    config_path = tmp_path / "runtime.toml"
    _write_config(config_path)
    (tmp_path / "SIGNATURE.ignore").write_text("file-signature\n")

    settings = Settings.from_runtime(config_path)

    assert settings.signature == "env-signature"


def test_settings_from_runtime_ignores_foreign_key_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)
    config_path = tmp_path / "runtime.toml"
    _write_config(config_path, signature_files='["OTHER", "SIGNATURE"]')
    (tmp_path / "OTHER").write_text("ODDS_API_KEY=not-a-signature\n")
    (tmp_path / "SIGNATURE").write_text("raw-signature\n")

    settings = Settings.from_runtime(config_path)

    assert settings.signature == "raw-signature"
