"""Application settings for crpt-api."""

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from crpt_api.gate import window_seconds
from crpt_api.runtime_config import load_runtime_config

SIGNATURE_ENV_NAMES = ("CRPT_API_SIGNATURE", "CRPT_SIGNATURE")


class Settings(BaseSettings):
    """Runtime settings for the document endpoint and its rate limit."""

    model_config = SettingsConfigDict(
        env_prefix="CRPT_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    endpoint: str = ""
    signature: str = Field(
        default="",
        validation_alias=AliasChoices(*SIGNATURE_ENV_NAMES, "signature"),
    )
    timeout_s: float = 10.0
    request_limit: int = 10
    window_unit: str = "second"
    window_amount: float = 1.0
    max_workers: int = 4
    log_level: str = "info"
    log_json: bool = False

    def window_s(self) -> float:
        """Window length in seconds."""
        return window_seconds(self.window_unit, self.window_amount)

    @staticmethod
    def _parse_signature_file(path: Path) -> str:
        try:
            raw = path.read_text(encoding="utf-8").strip()
        except OSError:
            return ""
        if not raw:
            return ""
        first_line = raw.splitlines()[0].strip()
        if "=" in first_line:
            key_name, value = first_line.split("=", 1)
            if key_name.strip().upper() not in SIGNATURE_ENV_NAMES:
                return ""
            return value.strip().strip('"').strip("'")
        return first_line.strip('"').strip("'")

    @classmethod
    def from_runtime(cls, config_path: Path | None = None) -> "Settings":
        """Construct settings from runtime config + direct signature env/file fallback."""
        runtime = load_runtime_config(config_path)

        signature = ""
        for name in SIGNATURE_ENV_NAMES:
            signature = os.environ.get(name, "").strip()
            if signature:
                break
        if not signature:
            for path in runtime.signature_files:
                if not path.is_file():
                    continue
                parsed = cls._parse_signature_file(path)
                if parsed:
                    signature = parsed
                    break

        return cls(
            endpoint=runtime.endpoint,
            signature=signature,
            timeout_s=runtime.timeout_s,
            request_limit=runtime.request_limit,
            window_unit=runtime.window_unit,
            window_amount=runtime.window_amount,
            max_workers=runtime.max_workers,
            log_level=runtime.log_level,
            log_json=runtime.log_json,
        )
