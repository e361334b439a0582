"""Settings — CLI flags, env vars and an optional TOML file in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags
  2. Env vars     — ``QRPRINT_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``qrprint.toml`` (explicit path or current directory)
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from qrprint.contrast import parse_hex_color

CONFIG_FILENAME = "qrprint.toml"


class FetchConfig(BaseModel):
    """[fetch] section."""

    model_config = {"frozen": True}

    timeout_seconds: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_base_seconds: float = Field(default=0.5, ge=0)
    backoff_cap_seconds: float = Field(default=4.0, ge=0)
    max_bytes: int = Field(default=25 * 1024 * 1024, gt=0)


class EditorConfig(BaseModel):
    """[editor] section — the bounded box the positioning editor draws into."""

    model_config = {"frozen": True}

    max_display_width: int = Field(default=800, gt=0)
    max_display_height: int = Field(default=600, gt=0)


class StickerConfig(BaseModel):
    """[sticker] section."""

    model_config = {"frozen": True}

    border_width: int = Field(default=4, ge=0)
    padding: int = Field(default=16, ge=0)
    caption: str = "SCAN ME"
    caption_height: int = Field(default=40, ge=0)
    corner_radius: int = Field(default=16, ge=0)
    colors: tuple[str, ...] = ("#00d4ff", "#a855f7", "#ec4899")

    @field_validator("colors")
    @classmethod
    def _check_colors(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not 1 <= len(v) <= 3:
            raise ValueError("sticker colors need 1 to 3 gradient stops")
        for c in v:
            parse_hex_color(c)
        return v


class QRConfig(BaseModel):
    """[qr] section."""

    model_config = {"frozen": True}

    ecc: str = "M"
    quiet_zone: int = Field(default=2, ge=0)

    @field_validator("ecc")
    @classmethod
    def _check_ecc(cls, v: str) -> str:
        if v.upper() not in ("L", "M", "Q", "H"):
            raise ValueError("ecc must be one of L, M, Q, H")
        return v.upper()


class CardConfig(BaseModel):
    """[card] section."""

    model_config = {"frozen": True}

    font_path: str | None = None
    qr_size: int = Field(default=240, ge=80)


class Settings(BaseSettings):
    """Unified, frozen settings for the qrprint engine and CLI."""

    model_config = {
        "frozen": True,
        "env_prefix": "QRPRINT_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None
    verbose: bool = False
    json_logs: bool = False
    log_file: str | None = None

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    sticker: StickerConfig = Field(default_factory=StickerConfig)
    qr: QRConfig = Field(default_factory=QRConfig)
    card: CardConfig = Field(default_factory=CardConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(cls, config_path: str | Path | None = None, **overrides: Any) -> Settings:
        """Build settings from an explicit TOML path (or ``./qrprint.toml``) plus overrides."""
        toml_path: Path | None = None
        if config_path:
            toml_path = Path(config_path)
            if not toml_path.is_file():
                raise ValueError(f"Config file not found: {toml_path}")
        elif Path(CONFIG_FILENAME).is_file():
            toml_path = Path(CONFIG_FILENAME)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``qrprint.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                raise ValueError(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()
