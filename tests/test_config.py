"""Tests for Settings: defaults, TOML source, env vars and overrides."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from qrprint.config import FetchConfig, QRConfig, Settings, StickerConfig


@pytest.mark.usefixtures("isolated_cwd")
class TestDefaults:
    def test_all_defaults(self) -> None:
        settings = Settings.load()
        assert settings.config_path is None
        assert settings.verbose is False
        assert settings.fetch.timeout_seconds == 30.0
        assert settings.fetch.max_attempts == 3
        assert settings.editor.max_display_width == 800
        assert settings.editor.max_display_height == 600
        assert settings.sticker.caption == "SCAN ME"
        assert settings.sticker.border_width == 4
        assert settings.sticker.padding == 16
        assert settings.qr.ecc == "M"
        assert settings.card.qr_size == 240

    def test_frozen(self) -> None:
        settings = Settings.load()
        with pytest.raises(ValidationError):
            settings.verbose = True  # type: ignore[misc]


@pytest.mark.usefixtures("isolated_cwd")
class TestTomlSource:
    def test_loads_from_cwd(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "qrprint.toml").write_text('[sticker]\ncaption = "SCAN"\n[qr]\necc = "h"\n')
        settings = Settings.load()
        assert settings.sticker.caption == "SCAN"
        assert settings.qr.ecc == "H"
        assert settings.sticker.padding == 16  # default preserved
        assert settings.config_path == Path("qrprint.toml")

    def test_explicit_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "print.toml"
        custom.parent.mkdir()
        custom.write_text("[fetch]\nmax_attempts = 5\n")
        settings = Settings.load(custom)
        assert settings.fetch.max_attempts == 5
        assert settings.config_path == custom

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            Settings.load(tmp_path / "nope.toml")

    def test_invalid_toml(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "qrprint.toml").write_text("[sticker\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            Settings.load()

    def test_invalid_value(self, isolated_cwd: Path) -> None:
        (isolated_cwd / "qrprint.toml").write_text("[card]\nqr_size = 10\n")
        with pytest.raises(ValidationError):
            Settings.load()


@pytest.mark.usefixtures("isolated_cwd")
class TestPriority:
    def test_env_overrides_toml(self, isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (isolated_cwd / "qrprint.toml").write_text("[fetch]\nmax_attempts = 5\n")
        monkeypatch.setenv("QRPRINT_FETCH__MAX_ATTEMPTS", "2")
        assert Settings.load().fetch.max_attempts == 2

    def test_kwargs_override_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QRPRINT_VERBOSE", "false")
        assert Settings.load(verbose=True).verbose is True


class TestSections:
    def test_sticker_colours_validated(self) -> None:
        with pytest.raises(ValidationError):
            StickerConfig(colors=("#zzzzzz",))

    def test_sticker_needs_a_colour(self) -> None:
        with pytest.raises(ValidationError):
            StickerConfig(colors=())

    def test_ecc_validated(self) -> None:
        with pytest.raises(ValidationError):
            QRConfig(ecc="X")

    def test_fetch_needs_an_attempt(self) -> None:
        with pytest.raises(ValidationError):
            FetchConfig(max_attempts=0)
