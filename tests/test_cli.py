"""Tests for CLI commands via Typer CliRunner."""

import json
import tomllib
from unittest.mock import patch

import pytest
import tomli_w
from rich.console import Console
from typer.testing import CliRunner

from spoof.cli.config_cmd import parse_assignment
from spoof.cli.main import app
from spoof.core.errors import ServiceError, SubmissionError

from conftest import FakeClient, make_config, status

runner = CliRunner()


@pytest.fixture
def fast_toml(tmp_path):
    """Override file that zeroes every delay."""
    path = tmp_path / "fast.toml"
    with open(path, "wb") as f:
        tomli_w.dump(make_config(), f)
    return path


@pytest.fixture(autouse=True)
def wide_consoles(monkeypatch):
    """Keep Rich from wrapping output lines."""
    for module in ("upload_cmd", "models_cmd", "generate_cmd", "status_cmd", "config_cmd"):
        monkeypatch.setattr(f"spoof.cli.{module}.console", Console(width=200))
    monkeypatch.delenv("SPOOF_SERVICE_URL", raising=False)


class TestModelsCommand:
    def test_lists_catalog(self):
        result = runner.invoke(app, ["models"])
        assert result.exit_code == 0, result.output
        for model_id in ("tabular-finetune", "text-finetune", "tabular-gan", "tabular-dp"):
            assert model_id in result.output
        assert "recommended" not in result.output

    def test_recommends_for_file(self, tmp_path):
        result = runner.invoke(app, ["models", "--file", str(tmp_path / "notes.txt")])
        assert result.exit_code == 0, result.output
        assert "Detected data type for notes.txt: text" in result.output
        assert result.output.count("(recommended)") == 1


class TestUploadCommand:
    @patch("spoof.cli.upload_cmd.SpoofClient")
    def test_upload(self, mock_cls, tmp_path):
        """spoof upload prints the dataset id and suggested models."""
        mock_cls.from_config.return_value.upload_dataset.return_value = "d42"
        data = tmp_path / "people.csv"
        data.write_text("name,age\nann,31\n")

        result = runner.invoke(app, ["upload", str(data), "--url", "http://svc.test"])

        assert result.exit_code == 0, result.output
        assert "Dataset id: d42" in result.output
        assert "Detected data type: tabular" in result.output
        assert "spoof generate --dataset d42" in result.output
        config = mock_cls.from_config.call_args[0][0]
        assert config["service"]["base_url"] == "http://svc.test"

    @patch("spoof.cli.upload_cmd.SpoofClient")
    def test_unsupported_type(self, mock_cls, tmp_path):
        data = tmp_path / "tool.exe"
        data.write_bytes(b"MZ")
        result = runner.invoke(app, ["upload", str(data)])
        assert result.exit_code == 1
        assert "Unsupported file type" in result.output
        mock_cls.from_config.assert_not_called()

    @patch("spoof.cli.upload_cmd.SpoofClient")
    def test_service_error(self, mock_cls, tmp_path):
        mock_cls.from_config.return_value.upload_dataset.side_effect = ServiceError("refused")
        data = tmp_path / "people.csv"
        data.write_text("a\n1\n")
        result = runner.invoke(app, ["upload", str(data)])
        assert result.exit_code == 1
        assert "Upload failed" in result.output


class TestGenerateCommand:
    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_full_run_writes_output(self, mock_cls, tmp_path, fast_toml):
        """spoof generate runs every phase and exports the records."""
        fake = FakeClient([status("running", 50), status("completed", 100)])
        mock_cls.from_config.return_value = fake
        out = tmp_path / "rows.json"

        result = runner.invoke(app, [
            "generate", "--dataset", "d1", "--samples", "500",
            "--output", str(out), "--config", str(fast_toml),
        ])

        assert result.exit_code == 0, result.output
        assert "Done: 2 records (job j1)" in result.output
        assert fake.train_calls == [("adsgan", "d1")]
        assert fake.generate_calls == [("j1", 500)]
        assert json.loads(out.read_text()) == fake.rows

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_model_option_uses_catalog(self, mock_cls, fast_toml):
        fake = FakeClient()
        mock_cls.from_config.return_value = fake
        result = runner.invoke(app, [
            "generate", "-d", "d1", "-m", "tabular-gan", "-c", str(fast_toml),
        ])
        assert result.exit_code == 0, result.output
        assert fake.train_calls == [("adsgan", "d1")]

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_unknown_model(self, mock_cls, fast_toml):
        result = runner.invoke(app, [
            "generate", "-d", "d1", "-m", "nope", "-c", str(fast_toml),
        ])
        assert result.exit_code == 1
        assert "Unknown model" in result.output
        mock_cls.from_config.assert_not_called()

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_invalid_parameters(self, mock_cls, fast_toml):
        result = runner.invoke(app, [
            "generate", "-d", "d1", "--quality", "10", "-c", str(fast_toml),
        ])
        assert result.exit_code == 1
        assert "quality must be between 25 and 100" in result.output

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_bad_format(self, mock_cls, fast_toml):
        result = runner.invoke(app, [
            "generate", "-d", "d1", "--format", "xml", "-c", str(fast_toml),
        ])
        assert result.exit_code == 1
        assert "Unknown format 'xml'" in result.output

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_training_failure(self, mock_cls, fast_toml):
        """A failed phase exits non-zero and names the phase."""
        mock_cls.from_config.return_value = FakeClient(
            train_error=SubmissionError("Failed to start model training: HTTP 500: boom"),
        )
        result = runner.invoke(app, [
            "generate", "-d", "d1", "-c", str(fast_toml), "--show-log",
        ])
        assert result.exit_code == 1
        assert "Run failed in Model Training" in result.output
        assert "training POST failed" in result.output
        assert "Debug log" in result.output

    @patch("spoof.cli.generate_cmd.SpoofClient")
    def test_output_directory(self, mock_cls, tmp_path, fast_toml):
        mock_cls.from_config.return_value = FakeClient()
        result = runner.invoke(app, [
            "generate", "-d", "d1", "-c", str(fast_toml),
            "-o", str(tmp_path), "--format", "csv",
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "synthetic_data_j1.csv").exists()


class TestStatusCommand:
    @patch("spoof.cli.status_cmd.SpoofClient")
    def test_status(self, mock_cls):
        mock_cls.from_config.return_value.fetch_status.return_value = {
            "status": "RUNNING", "percent": 42.4,
        }
        result = runner.invoke(app, ["status", "j1"])
        assert result.exit_code == 0, result.output
        assert "Job j1: running (42%)" in result.output

    @patch("spoof.cli.status_cmd.SpoofClient")
    def test_status_error(self, mock_cls):
        mock_cls.from_config.return_value.fetch_status.side_effect = ServiceError("HTTP 404: nope", 404)
        result = runner.invoke(app, ["status", "j1"])
        assert result.exit_code == 1
        assert "Status fetch failed" in result.output


class TestWebCommand:
    @patch("uvicorn.run")
    def test_starts_uvicorn(self, mock_run):
        result = runner.invoke(app, ["web", "--port", "9001"])
        assert result.exit_code == 0, result.output
        assert mock_run.call_args[0][0] == "spoof.web.app:app"
        assert mock_run.call_args[1]["port"] == 9001
        assert mock_run.call_args[1]["host"] == "127.0.0.1"


class TestConfigCommand:
    def test_show(self, tmp_path):
        result = runner.invoke(app, ["config", "-c", str(tmp_path / "none.toml")])
        assert result.exit_code == 0, result.output
        assert "polling.interval" in result.output
        assert "service.base_url" in result.output
        assert not (tmp_path / "none.toml").exists()

    def test_set_writes_override(self, tmp_path):
        """--set values land in the override file with TOML types."""
        path = tmp_path / "spoof.toml"
        result = runner.invoke(app, [
            "config", "-c", str(path),
            "--set", "polling.interval=0.5",
            "--set", "generation.poll_status=true",
            "--set", "service.base_url=http://svc.test:9000",
        ])
        assert result.exit_code == 0, result.output
        with open(path, "rb") as f:
            written = tomllib.load(f)
        assert written == {
            "polling": {"interval": 0.5},
            "generation": {"poll_status": True},
            "service": {"base_url": "http://svc.test:9000"},
        }
        assert "Written to:" in result.output

    def test_set_keeps_existing_values(self, tmp_path):
        path = tmp_path / "spoof.toml"
        path.write_text('[polling]\nmax_consecutive_errors = 3\n')
        result = runner.invoke(app, ["config", "-c", str(path), "--set", "polling.interval=1"])
        assert result.exit_code == 0, result.output
        with open(path, "rb") as f:
            assert tomllib.load(f)["polling"] == {"max_consecutive_errors": 3, "interval": 1}

    def test_bad_assignment(self, tmp_path):
        path = tmp_path / "spoof.toml"
        result = runner.invoke(app, ["config", "-c", str(path), "--set", "interval"])
        assert result.exit_code == 1
        assert "Expected section.key=value" in result.output
        assert not path.exists()

    def test_parse_assignment(self):
        assert parse_assignment("pipeline.max_samples=500") == ("pipeline", "max_samples", 500)
        assert parse_assignment('upload.extensions=[".csv"]') == ("upload", "extensions", [".csv"])
        assert parse_assignment("generation.model_name=adsgan") == ("generation", "model_name", "adsgan")
