"""Unit tests for the CLI: command registration and codec commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from certforge.cli.app import app
from certforge.core.arc19 import encode_address

runner = CliRunner()

ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"
ZERO_CID = "bafkrei" + "a" * 52


class TestCliApp:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("cid-to-address", "address-to-cid", "analyze", "history", "demo"):
            assert name in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()


class TestCodecCommands:
    def test_cid_to_address(self):
        result = runner.invoke(app, ["cid-to-address", ZERO_CID])
        assert result.exit_code == 0
        assert ZERO_ADDRESS in result.output

    def test_address_to_cid(self):
        result = runner.invoke(app, ["address-to-cid", ZERO_ADDRESS, "--url"])
        assert result.exit_code == 0
        assert ZERO_CID in result.output
        assert "ipfs" in result.output

    def test_invalid_cid_exits_nonzero(self):
        result = runner.invoke(app, ["cid-to-address", "not-a-cid"])
        assert result.exit_code == 1
        assert "Invalid CID" in result.output

    def test_invalid_address_exits_nonzero(self):
        result = runner.invoke(app, ["address-to-cid", "SHORT"])
        assert result.exit_code == 1

    def test_analyze_round_trip(self):
        result = runner.invoke(app, ["analyze", ZERO_ADDRESS, "--round-trip"])
        assert result.exit_code == 0
        assert "arc19_cid" in result.output
        assert "Round trip OK" in result.output

    def test_analyze_empty(self):
        result = runner.invoke(app, ["analyze"])
        assert result.exit_code == 0
        assert "empty" in result.output


class TestHistoryCommand:
    def test_resolves_chain(self):
        second = encode_address(bytes([1] * 32))
        result = runner.invoke(app, ["history", ZERO_ADDRESS, second, "--object", "7"])
        assert result.exit_code == 0
        assert "Version history for object 7" in result.output

    def test_reports_undecodable(self):
        result = runner.invoke(app, ["history", ZERO_ADDRESS, "garbage"])
        assert result.exit_code == 0
        assert "not decodable" in result.output


class TestDemoCommand:
    def test_demo_with_injected_failures(self, tmp_path: Path):
        result = runner.invoke(
            app,
            [
                "demo",
                "--store", str(tmp_path / "blocks"),
                "--versions", "1",
                "--fail-upload", "1",
                "--reject-signature", "1",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Retrying upload" in result.output
        assert "Retrying object-create" in result.output
        assert "Flow complete" in result.output

    def test_demo_gives_up_after_retries(self, tmp_path: Path):
        result = runner.invoke(
            app,
            ["demo", "--store", str(tmp_path / "blocks"), "--fail-upload", "5", "--max-retries", "1"],
        )
        assert result.exit_code == 1
        assert "Certification failed at upload" in result.output
