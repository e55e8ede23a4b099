"""Tests for the bundlectl command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import yaml
from click.testing import CliRunner

from bundlectl import __version__
from bundlectl.cli.common import Context, ExitCode
from bundlectl.cli.main import cli
from bundlectl.core.client import BundlerClient
from tests.conftest import BASE_URL, FakeBundler


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point bundlectl at a temporary config file."""
    path = temp_dir / "config.yaml"
    monkeypatch.setattr("bundlectl.core.config.CONFIG_FILE", path)
    for name in ("BUNDLR_URL", "BUNDLR_CURRENCY", "BUNDLR_PROFILE", "BUNDLR_VERIFY_SSL", "BUNDLR_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture
def configured(config_file: Path, sample_config_yaml: str) -> Path:
    config_file.write_text(sample_config_yaml)
    return config_file


@pytest.fixture
def fake_node(configured: Path, bundler: FakeBundler, monkeypatch: pytest.MonkeyPatch) -> FakeBundler:
    """Route every CLI client to the fake bundler."""
    bundler.currency = "matic"

    def get_client(self: Context) -> BundlerClient:
        return BundlerClient(BASE_URL, transport=httpx.MockTransport(bundler))

    monkeypatch.setattr(Context, "get_client", get_client)
    return bundler


# =============================================================================
# Top-Level Tests
# =============================================================================


class TestMain:
    """Tests for the main command group."""

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"bundlectl, version {__version__}" in result.output

    def test_help_lists_commands(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("upload", "chunks", "manifest", "config", "ping"):
            assert name in result.output

    def test_ping(self, runner: CliRunner, fake_node: FakeBundler):
        result = runner.invoke(cli, ["ping", "-o", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "ok"

    def test_missing_profile_is_config_error(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(cli, ["ping"])
        assert result.exit_code == ExitCode.CONFIG_ERROR


# =============================================================================
# Config Command Tests
# =============================================================================


class TestConfigCommands:
    """Tests for config commands."""

    def test_init_writes_profile(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(
            cli,
            ["config", "init", "--url", "https://node1.bundlr.test/", "--currency", "Matic"],
        )

        assert result.exit_code == 0
        data = yaml.safe_load(config_file.read_text())
        assert data["default_profile"] == "default"
        assert data["profiles"]["default"]["url"] == "https://node1.bundlr.test"
        assert data["profiles"]["default"]["currency"] == "matic"

    def test_init_existing_profile_requires_force(self, runner: CliRunner, configured: Path):
        args = ["config", "init", "--url", "https://x.test", "--currency", "arweave", "--profile", "test"]

        assert runner.invoke(cli, args).exit_code != 0
        assert runner.invoke(cli, [*args, "--force"]).exit_code == 0

    def test_init_rejects_bad_chunk_size(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(
            cli,
            ["config", "init", "--url", "https://x.test", "--currency", "arweave", "--chunk-size", "10"],
        )

        assert result.exit_code == 1
        assert not config_file.exists()

    def test_show_json(self, runner: CliRunner, configured: Path):
        result = runner.invoke(cli, ["config", "show", "-o", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["default_profile"] == "test"
        assert data["profiles"]["test"]["currency"] == "matic"

    def test_use_and_current_context(self, runner: CliRunner, configured: Path):
        assert runner.invoke(cli, ["config", "use-context", "production"]).exit_code == 0

        result = runner.invoke(cli, ["config", "current-context"])
        assert result.output.strip() == "production"

    def test_use_unknown_context(self, runner: CliRunner, configured: Path):
        result = runner.invoke(cli, ["config", "use-context", "ghost"])
        assert result.exit_code == 1

    def test_add_and_remove_profile(self, runner: CliRunner, configured: Path):
        result = runner.invoke(
            cli,
            ["config", "add-profile", "dev", "--url", "https://dev.test", "--batch-size", "2", "--force-chunking"],
        )
        assert result.exit_code == 0
        dev = yaml.safe_load(configured.read_text())["profiles"]["dev"]
        assert dev["batch_size"] == 2
        assert dev["force_chunking"] is True

        assert runner.invoke(cli, ["config", "remove-profile", "dev", "-y"]).exit_code == 0
        assert "dev" not in yaml.safe_load(configured.read_text())["profiles"]

    def test_cannot_remove_default_profile(self, runner: CliRunner, configured: Path):
        result = runner.invoke(cli, ["config", "remove-profile", "test", "-y"])
        assert result.exit_code == 1


# =============================================================================
# Upload Command Tests
# =============================================================================


class TestUploadCommand:
    """Tests for upload and chunks commands."""

    def test_upload_files(self, runner: CliRunner, fake_node: FakeBundler, temp_dir: Path):
        first = temp_dir / "a.bin"
        second = temp_dir / "b.bin"
        first.write_bytes(b"first")
        second.write_bytes(b"second")

        result = runner.invoke(
            cli,
            ["upload", str(first), str(second), "--id", "ID-A", "--id", "ID-B", "-o", "json"],
        )

        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert [row["id"] for row in rows] == ["ID-A", "ID-B"]
        assert all(row["outcome"] == "completed" for row in rows)
        assert fake_node.count("POST", "/tx/matic") == 2

    def test_upload_force_chunking(self, runner: CliRunner, fake_node: FakeBundler, temp_dir: Path):
        path = temp_dir / "a.bin"
        path.write_bytes(b"c" * 1_500_000)

        result = runner.invoke(
            cli,
            ["upload", str(path), "--id", "BIG", "--force-chunking", "--chunk-size", "1000000", "-q"],
        )

        assert result.exit_code == 0, result.output
        assert sorted(fake_node.chunk_posts("BIG")) == [0, 1_000_000]
        assert fake_node.items["BIG"] == b"c" * 1_500_000

    def test_id_count_mismatch(self, runner: CliRunner, fake_node: FakeBundler, temp_dir: Path):
        path = temp_dir / "a.bin"
        path.write_bytes(b"x")

        result = runner.invoke(cli, ["upload", str(path), "--id", "A", "--id", "B"])

        assert result.exit_code == 2

    def test_insufficient_funds_exit_code(
        self, runner: CliRunner, fake_node: FakeBundler, temp_dir: Path
    ):
        path = temp_dir / "a.bin"
        path.write_bytes(b"x")
        fake_node.tx_status = 402

        result = runner.invoke(cli, ["upload", str(path), "--id", "A", "-q"])

        assert result.exit_code == ExitCode.INSUFFICIENT_FUNDS

    def test_failed_item_exit_code(
        self,
        runner: CliRunner,
        fake_node: FakeBundler,
        temp_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        async def no_wait(delay: float) -> None:
            return None

        monkeypatch.setattr("bundlectl.uploaders.common.asyncio.sleep", no_wait)
        path = temp_dir / "a.bin"
        path.write_bytes(b"x")
        fake_node.tx_status = 400

        result = runner.invoke(cli, ["upload", str(path), "--id", "A", "-q"])

        assert result.exit_code == ExitCode.GENERAL_ERROR

    @pytest.mark.parametrize("option", ["--batch-size", "--chunk-size"])
    def test_zero_size_option_is_rejected(
        self, runner: CliRunner, fake_node: FakeBundler, temp_dir: Path, option: str
    ):
        path = temp_dir / "a.bin"
        path.write_bytes(b"x")

        result = runner.invoke(cli, ["upload", str(path), "--id", "A", option, "0"])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "size" in result.stderr.lower()
        assert fake_node.requests == []

    def test_chunks_status(self, runner: CliRunner, fake_node: FakeBundler):
        fake_node.chunks["PART"] = {0: b"a", 1_000_000: b"b"}

        result = runner.invoke(cli, ["chunks", "status", "PART", "3000000", "-o", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["completed"] is False
        assert data["offsets"] == [0, 1_000_000]


# =============================================================================
# Manifest Command Tests
# =============================================================================


class TestManifestCommand:
    """Tests for the manifest command."""

    def test_prints_manifest(self, runner: CliRunner):
        result = runner.invoke(cli, ["manifest", "index.html=ID1", "a/b.css=ID2", "--index", "index.html"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["manifest"] == "arweave/paths"
        assert data["index"] == {"path": "index.html"}
        assert data["paths"]["a/b.css"] == {"id": "ID2"}

    def test_saves_manifest(self, runner: CliRunner, temp_dir: Path):
        target = temp_dir / "manifest.json"

        result = runner.invoke(cli, ["manifest", "x=ID1", "--save", str(target), "-q"])

        assert result.exit_code == 0
        assert json.loads(target.read_text())["paths"] == {"x": {"id": "ID1"}}

    def test_bad_entry(self, runner: CliRunner):
        result = runner.invoke(cli, ["manifest", "no-separator"])
        assert result.exit_code == 2

    def test_unknown_index(self, runner: CliRunner):
        result = runner.invoke(cli, ["manifest", "a=ID1", "--index", "b"])
        assert result.exit_code == 1
        assert "Unable to access item" in result.output
