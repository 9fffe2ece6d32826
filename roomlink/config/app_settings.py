import os

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, JsonConfigSettingsSource, SettingsConfigDict

AES_BLOCK_BYTES = 16
AES_KEY_SIZES = (16, 24, 32)


def _non_empty(value: str, name: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"'{name}' must not be empty")
    return trimmed


def _check_aes_key(value: str) -> str:
    value = _non_empty(value, "aes_key")
    if len(value.encode("utf-8")) not in AES_KEY_SIZES:
        raise ValueError("'aes_key' must be 16, 24 or 32 bytes in UTF-8")
    return value


def _check_aes_iv(value: str) -> str:
    value = _non_empty(value, "aes_iv")
    if len(value.encode("utf-8")) != AES_BLOCK_BYTES:
        raise ValueError(f"'aes_iv' must be exactly {AES_BLOCK_BYTES} bytes in UTF-8")
    return value


class ServerSettings(BaseModel):
    """Local REST service settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8710, gt=1024, lt=65536)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    debug_modules: list[str] = Field(default_factory=list)


class FeatureSettings(BaseModel):
    """Feature switches."""

    game_servers: bool = Field(default=True)


class JoinDirectSettings(BaseModel):
    """Localhost join endpoint exposed by the game client mod, plus the shared join cipher."""

    localhost_base_url: str = Field(default="http://127.0.0.1:22021")
    join_path: str = Field(default="/join")
    aes_key: str = Field(default="0123456789abcdef")
    aes_iv: str = Field(default="fedcba9876543210")
    timeout_ms: int = Field(default=5000, gt=0)
    success_message: str = Field(default="接続しました。")

    @field_validator("localhost_base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        return _non_empty(value, "localhost_base_url").rstrip("/")

    @field_validator("join_path")
    @classmethod
    def _lead_join_path(cls, value: str) -> str:
        value = _non_empty(value, "join_path")
        return value if value.startswith("/") else f"/{value}"

    @field_validator("aes_key")
    @classmethod
    def _validate_key(cls, value: str) -> str:
        return _check_aes_key(value)

    @field_validator("aes_iv")
    @classmethod
    def _validate_iv(cls, value: str) -> str:
        return _check_aes_iv(value)


class GameServerSettings(BaseModel):
    """One selectable regional rooms endpoint."""

    id: str
    label: str
    rooms_api_domain: str
    server_type: int = Field(ge=0)
    # Falls back to join_direct's key/iv when omitted
    aes_key: str | None = None
    aes_iv: str | None = None

    @field_validator("id", "label")
    @classmethod
    def _trim(cls, value: str, info) -> str:
        return _non_empty(value, info.field_name)

    @field_validator("rooms_api_domain")
    @classmethod
    def _strip_domain(cls, value: str) -> str:
        return _non_empty(value, "rooms_api_domain").rstrip("/")

    @field_validator("aes_key")
    @classmethod
    def _validate_key(cls, value: str | None) -> str | None:
        return None if value is None else _check_aes_key(value)

    @field_validator("aes_iv")
    @classmethod
    def _validate_iv(cls, value: str | None) -> str | None:
        return None if value is None else _check_aes_iv(value)


# Resolved at import time so the working directory at startup decides which file is read
_config_path = os.environ.get("ROOMLINK_CONFIG", os.path.join(os.getcwd(), "config.json"))


class AppSettings(BaseSettings):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    join_direct: JoinDirectSettings = Field(default_factory=JoinDirectSettings)
    game_servers: list[GameServerSettings] = Field(default_factory=list)
    rooms_refresh_interval: float = Field(default=15.0, gt=0)

    model_config = SettingsConfigDict(
        json_file=_config_path,
        json_file_encoding="utf-8",
        env_prefix="ROOMLINK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            JsonConfigSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


app_config = AppSettings()
