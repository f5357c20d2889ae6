"""Client configuration loading and validation."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, Literal

import yaml
from pydantic import Field, NonNegativeFloat, NonNegativeInt, PositiveFloat
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("/etc/rpi-link/client.yaml"),
    Path("/etc/rpi-link/client.yml"),
    Path("./config/client.yaml"),
    Path("./config/client.yml"),
)


class RpiLinkSettings(BaseSettings):
    """Validated settings for the device client."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="RPI_LINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Endpoint
    device_host: str = Field(
        default="localhost",
        description="Host (and optional port) of the device serving the WebSocket endpoint.",
    )
    device_scheme: Literal["ws", "wss"] = Field(
        default="wss",
        description="WebSocket scheme used to reach the device.",
    )
    device_path: str = Field(
        default="/ws",
        description="Path of the device WebSocket endpoint.",
    )
    transport: Literal["websocket", "loopback"] = Field(
        default="websocket",
        description="Socket provider implementation to use.",
    )

    # Connection lifecycle
    settle_delay_seconds: NonNegativeFloat = Field(
        default=0.05,
        description="Delay between the socket 'open' event and declaring the connection writable.",
    )
    reconnect_base_delay_seconds: NonNegativeFloat = Field(
        default=15.0,
        description="Delay before reconnecting after the connection closes.",
    )
    reconnect_max_delay_seconds: NonNegativeFloat = Field(
        default=15.0,
        description="Ceiling for the reconnect backoff when closes keep recurring.",
    )
    reconnect_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Growth factor applied per consecutive close without a successful open.",
    )
    reconnect_jitter: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Jitter factor applied to the reconnect backoff (0.0-1.0).",
    )

    # Send pipeline
    send_max_retries: NonNegativeInt = Field(
        default=10,
        description="Additional write attempts after the first failed one.",
    )
    send_retry_delay_seconds: NonNegativeFloat = Field(
        default=1.0,
        description="Delay between write attempts.",
    )
    response_timeout_seconds: PositiveFloat | None = Field(
        default=None,
        description="Default deadline for named replies; unset waits forever.",
    )

    # Notifications
    remote_error_cooldown_seconds: NonNegativeFloat = Field(
        default=5.0,
        description="Minimum gap between device error notifications.",
    )
    connection_closed_cooldown_seconds: NonNegativeFloat = Field(
        default=10.0,
        description="Minimum gap between connection-closed notifications.",
    )
    connection_closed_toast_seconds: PositiveFloat = Field(
        default=10.0,
        description="Display duration of the connection-closed notification.",
    )
    toast_duration_seconds: PositiveFloat = Field(
        default=3.0,
        description="Default display duration of notifications.",
    )
    download_toast_seconds: PositiveFloat = Field(
        default=1.0,
        description="Display duration of the download notification.",
    )

    # Local layout
    download_dir: Path = Field(
        default=Path("./downloads"),
        description="Directory where downloaded files are written.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level for the client process.",
    )

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("device_path", mode="before")
    @classmethod
    def _normalize_device_path(cls, value: str) -> str:
        if isinstance(value, str) and not value.startswith("/"):
            return f"/{value}"
        return value

    @property
    def device_ws_url(self) -> str:
        return f"{self.device_scheme}://{self.device_host}{self.device_path}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[RpiLinkSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            cls._yaml_settings_source,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @staticmethod
    def _yaml_settings_source(settings_cls: type[RpiLinkSettings] | None = None) -> Dict[str, Any]:
        candidates: Iterable[Path] = RpiLinkSettings._resolve_candidate_paths()

        for path in candidates:
            data = RpiLinkSettings._load_file(path)
            if data is not None:
                data.setdefault("config_path", path)
                return data
        return {}

    @staticmethod
    def _resolve_candidate_paths() -> Iterable[Path]:
        explicit = os.getenv("RPI_LINK_CONFIG_FILE")
        if explicit:
            yield Path(explicit).expanduser()
        yield from DEFAULT_CONFIG_LOCATIONS

    @staticmethod
    def _load_file(path: Path) -> Dict[str, Any] | None:
        if not path.is_file():
            return None
        suffix = path.suffix.lower()
        try:
            with path.open("r", encoding="utf-8") as handle:
                if suffix in {".yaml", ".yml"}:
                    raw = yaml.safe_load(handle)
                elif suffix == ".json":
                    raw = json.load(handle)
                else:
                    return None
        except OSError as exc:
            raise RuntimeError(f"Failed to read client config file {path}") from exc
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid client config file {path}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"Client config file {path} must contain a mapping at top level.")
        return raw


@lru_cache()
def get_settings() -> RpiLinkSettings:
    """Return memoized client settings."""

    settings = RpiLinkSettings()
    settings.download_dir = settings.download_dir.expanduser().resolve()
    return settings
