"""
Tests for session configuration, reports and the command-line interface.

Uses the sample Sharan data shipped in the repository's carmodels/ directory.
"""

import csv
import json
import pytest
from pathlib import Path

from camview.cli import main, zone_number
from camview.config import SessionConfig
from camview.errors import ConfigNotFound, MalformedConfig

SAMPLE_MODELS_DIR = Path(__file__).resolve().parents[2] / "carmodels"


class TestSessionConfig:
    """Tests for session configuration files."""

    def test_default_paths(self):
        paths = SessionConfig(models_dir="models", model="Sharan").paths()
        assert paths.registry == Path("models/carmodels.json")
        assert paths.calibration == Path("models/Sharan/calibration.json")
        assert paths.zones == Path("models/Sharan/viewing_zones.json")

    def test_overrides(self):
        session = SessionConfig(models_dir="models", calibration="/tmp/c.yaml")
        assert session.paths().calibration == Path("/tmp/c.yaml")

    def test_from_yaml_resolves_relative_paths(self, tmp_path):
        path = tmp_path / "session.yaml"
        path.write_text("models_dir: models\nmodel: Touran\nzone: 9\noutput_dir: out\n")
        session = SessionConfig.from_yaml(str(path))
        assert session.models_dir == str(tmp_path / "models")
        assert session.model == "Touran"
        assert session.zone == 9
        assert session.output_dir == str(tmp_path / "out")
        assert session.calibration is None

    def test_to_yaml(self, tmp_path):
        path = tmp_path / "session.yaml"
        SessionConfig(models_dir=str(tmp_path / "m"), model="Sharan", zone=3).to_yaml(str(path))
        session = SessionConfig.from_yaml(str(path))
        assert session.models_dir == str(tmp_path / "m")
        assert session.zone == 3

    def test_missing_session_file(self, tmp_path):
        with pytest.raises(ConfigNotFound):
            SessionConfig.from_yaml(str(tmp_path / "absent.yaml"))

    def test_bad_zone(self, tmp_path):
        path = tmp_path / "session.yaml"
        path.write_text("zone: nine\n")
        with pytest.raises(MalformedConfig):
            SessionConfig.from_yaml(str(path))


class TestZoneArgument:
    """Tests for the zone argument type."""

    def test_valid(self):
        assert zone_number("9") == 9

    @pytest.mark.parametrize("value", ["0", "21", "nine"])
    def test_invalid(self, value):
        import argparse
        with pytest.raises(argparse.ArgumentTypeError):
            zone_number(value)


class TestMain:
    """Tests for the CLI entry point."""

    def test_all_zones(self, capsys):
        assert main(["--models-dir", str(SAMPLE_MODELS_DIR)]) == 0
        out = capsys.readouterr().out
        assert "CAMERA CALIBRATION: Sharan" in out
        assert "Created 19 viewing zone(s)" in out
        assert "Zone 20 " in out

    def test_single_zone_with_reports(self, tmp_path):
        code = main([
            "--models-dir", str(SAMPLE_MODELS_DIR),
            "--zone", "9",
            "--output-dir", str(tmp_path),
        ])
        assert code == 0

        report = json.loads((tmp_path / "scene_report.json").read_text())
        assert report["model"] == "Sharan"
        assert report["zone_filter"] == 9
        assert [z["id"] for z in report["zones"]] == [9]
        assert report["camera"]["center"] == pytest.approx(
            [-397.74068678243776, 23.064699630140467, 595.3452132457162])

        with open(tmp_path / "zones.csv", newline='') as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 20
        status = {int(r["zone_id"]): r["status"] for r in rows}
        assert status[9] == "included"
        assert status[1] == "filtered"

    def test_unused_zone_status(self, tmp_path):
        assert main(["--models-dir", str(SAMPLE_MODELS_DIR), "-o", str(tmp_path)]) == 0
        with open(tmp_path / "zones.csv", newline='') as f:
            status = {int(r["zone_id"]): r["status"] for r in csv.DictReader(f)}
        assert status[20] == "unused"
        assert status[1] == "included"

    def test_list_models(self, capsys):
        assert main(["--models-dir", str(SAMPLE_MODELS_DIR), "--list-models"]) == 0
        assert "Sharan" in capsys.readouterr().out.split()

    def test_unknown_model(self):
        assert main(["--models-dir", str(SAMPLE_MODELS_DIR), "--model", "Touran"]) == 1

    def test_missing_models_dir(self, tmp_path):
        assert main(["--models-dir", str(tmp_path)]) == 1

    def test_zone_out_of_range(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--zone", "21"])
        assert exc_info.value.code == 2

    def test_session_file(self, tmp_path, capsys):
        session = tmp_path / "session.yaml"
        session.write_text(f"models_dir: {SAMPLE_MODELS_DIR}\nzone: 3\n")
        assert main(["--config", str(session)]) == 0
        assert "ONLY ZONE 3" in capsys.readouterr().out
