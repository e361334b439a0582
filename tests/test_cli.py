"""Tests for the qrprint command-line interface."""

from pathlib import Path

import pytest
import requests

from conftest import FakeSession, make_png, open_png
from qrprint.cli import EXIT_FAILED, EXIT_RETRYABLE, main

URL = "https://example.com/c/launch"


@pytest.mark.usefixtures("isolated_cwd")
class TestCommands:
    def test_layouts(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["layouts"])
        out = capsys.readouterr().out
        for layout_id in ("classic", "centered", "modern", "split", "minimal"):
            assert layout_id in out

    def test_qr(self, isolated_cwd: Path) -> None:
        main(["qr", URL, "-o", "qr.png", "--size", "256", "--quiet-zone", "4", "--verify"])
        assert open_png((isolated_cwd / "qr.png").read_bytes()).size == (256, 256)

    def test_sticker_from_width(self, isolated_cwd: Path) -> None:
        main(["sticker", URL, "--width", "300", "--style", "blue", "-o", "s.png"])
        assert open_png((isolated_cwd / "s.png").read_bytes()).size == (300, 340)

    def test_composite(self, isolated_cwd: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (isolated_cwd / "design.png").write_bytes(make_png((2000, 1500)))
        main(["composite", "design.png", URL, "--x", "100", "--y", "50", "--name", "Spring Promo"])
        out = capsys.readouterr().out
        assert "250,125 300x400" in out
        img = open_png((isolated_cwd / "output" / "spring_promo_final-design.png").read_bytes())
        assert img.size == (2000, 1500)

    def test_card_both_sides(self, isolated_cwd: Path) -> None:
        main([
            "card", "--layout", "split", "--name", "Jane Doe", "--title", "Director",
            "--email", "jane@acme.test", "--url", URL, "--verify",
        ])
        assert (isolated_cwd / "output" / "jane_doe_split.png").is_file()
        assert (isolated_cwd / "output" / "jane_doe_back.png").is_file()

    def test_card_front_only(self, isolated_cwd: Path) -> None:
        main(["card", "--layout", "minimal", "--side", "front", "--name", "Jane"])
        assert (isolated_cwd / "output" / "jane_minimal.png").is_file()
        assert not (isolated_cwd / "output" / "jane_back.png").exists()


@pytest.mark.usefixtures("isolated_cwd")
class TestFailures:
    def test_no_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_region_too_small(self, isolated_cwd: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (isolated_cwd / "design.png").write_bytes(make_png((2000, 1500)))
        with pytest.raises(SystemExit) as exc_info:
            main(["composite", "design.png", URL, "--x", "0", "--y", "0", "--width", "50", "--height", "50"])
        assert exc_info.value.code == EXIT_FAILED
        assert "error[resolve-region]" in capsys.readouterr().err

    def test_fetch_failure_is_retryable(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("QRPRINT_FETCH__BACKOFF_BASE_SECONDS", "0")
        monkeypatch.setattr(requests, "Session", lambda: FakeSession(requests.ConnectionError("down")))
        with pytest.raises(SystemExit) as exc_info:
            main(["composite", "https://cdn.example.com/d.png", URL, "--x", "0", "--y", "0"])
        assert exc_info.value.code == EXIT_RETRYABLE
        assert "error[fetch]" in capsys.readouterr().err

    def test_oversized_payload_reports_stage(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["sticker", "https://example.com/" + "a" * 4000, "-o", "s.png"])
        assert exc_info.value.code == EXIT_FAILED
        assert "error[render]" in capsys.readouterr().err

    def test_back_needs_url(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["card", "--side", "back", "--name", "Jane"])
        assert exc_info.value.code == EXIT_FAILED
        assert "--url" in capsys.readouterr().err

    def test_unknown_layout(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["card", "--layout", "fancy", "--name", "Jane"])
        assert exc_info.value.code == EXIT_FAILED

    def test_missing_config(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "missing.toml", "layouts"])
        assert exc_info.value.code == EXIT_FAILED
        assert "error[config]" in capsys.readouterr().err
