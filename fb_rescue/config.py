"""Application settings."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings

WINDOWS_SERVICE_NAMES = [
    "FirebirdServerFB25",
    "FirebirdServerDefaultInstance",
    "FirebirdServer",
    "FirebirdGuardianDefaultInstance",
]
SYSTEMD_SERVICE_NAMES = ["firebird", "firebird2.5-super", "firebird3.0"]


def _default_service_names() -> list[str]:
    return list(WINDOWS_SERVICE_NAMES if os.name == "nt" else SYSTEMD_SERVICE_NAMES)


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 8788
    debug: bool = False
    config_dir: Path = Path.home() / ".fb-rescue"
    service_names: list[str] = _default_service_names()
    rename_attempts: int = 10
    rename_delay: float = 1.0
    tool_timeout: float = 3600.0
    archive_extension: str = "FBK"
    keep_history_in_temp: bool = False
    default_user: str = "SYSDBA"
    default_password: str = "masterkey"

    model_config = {"env_prefix": "FBR_"}

    @property
    def settings_file(self) -> Path:
        return self.config_dir / "settings.json"


settings = Settings()
