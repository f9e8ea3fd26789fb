"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from sheetnest import __version__
from sheetnest.cli.main import cli
from sheetnest.cli.nest_cmd import load_job
from sheetnest.config import configure


@pytest.fixture(autouse=True)
def reset_settings():
    configure(None)
    yield
    configure(None)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def job_file(tmp_path):
    """Job with one stock sheet and three boards."""
    path = tmp_path / "cabinet.json"
    path.write_text(json.dumps({
        "sheets": [{"id": "stock-1", "width": 2440, "height": 1220}],
        "boards": [
            {"name": "side", "width": 600, "height": 400, "quantity": 2},
            {"name": "shelf", "width": 500, "height": 300, "material": None},
        ],
    }))
    return path


class TestLoadJob:
    """Tests for job file parsing."""

    def test_object_job(self, job_file):
        sheets, boards = load_job(job_file)

        assert [s.sheet_id for s in sheets] == ["stock-1"]
        assert [b.name for b in boards] == ["side#1", "side#2", "shelf"]
        assert boards[0].width == 600

    def test_list_job(self, tmp_path):
        """Test a plain list of boards with an outline."""
        path = tmp_path / "boards.json"
        path.write_text(json.dumps([
            {"outline": [[0, 0], [100, 0], [100, 50], [0, 50]], "material": "Oak", "thickness": 18},
        ]))

        sheets, boards = load_job(path)

        assert sheets == []
        assert boards[0].name == "board_1"
        assert boards[0].height == 50
        assert boards[0].material == "Oak"

    def test_thickness_coerced(self, tmp_path):
        path = tmp_path / "boards.json"
        path.write_text(json.dumps([{"width": 100, "height": 100, "thickness": "18"}]))

        _, boards = load_job(path)

        assert boards[0].thickness == 18.0


class TestNestCommand:
    """Tests for the nest command."""

    def test_json_output(self, runner, job_file):
        """Test machine-readable results."""
        result = runner.invoke(cli, ["nest", str(job_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [r["board"] for r in data["results"]] == ["side#1", "side#2", "shelf"]
        assert all(r["success"] for r in data["results"])
        assert all(r["sheet_id"] == "stock-1" for r in data["results"])
        assert [r["x"] for r in data["results"][:2]] == [0, 605]
        assert len(data["sheets"]) == 1
        assert data["problems"] == []

    def test_summary_output(self, runner, job_file):
        result = runner.invoke(cli, ["nest", str(job_file)])

        assert result.exit_code == 0
        assert "Nesting Summary" in result.output
        assert "stock-1" in result.output

    def test_layout_output(self, runner, job_file):
        result = runner.invoke(cli, ["nest", str(job_file), "--layout"])

        assert result.exit_code == 0
        assert "; Nesting layout" in result.output

    def test_no_new_sheets_failure(self, runner, tmp_path):
        """Test unplaced boards make the command fail."""
        path = tmp_path / "big.json"
        path.write_text(json.dumps([{"name": "top", "width": 3000, "height": 1500}]))

        result = runner.invoke(cli, ["nest", str(path), "--no-new-sheets"])

        assert result.exit_code == 1
        assert "No suitable placement found" in result.output

    def test_spacing_option(self, runner, job_file):
        result = runner.invoke(cli, ["nest", str(job_file), "--json", "--spacing", "20"])

        data = json.loads(result.stdout)
        assert data["results"][1]["x"] == 620

    def test_bad_board(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"name": "x"}]))

        result = runner.invoke(cli, ["nest", str(path)])

        assert result.exit_code != 0
        assert "needs 'outline'" in result.output

    def test_bad_thickness(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"name": "x", "width": 100, "height": 100, "thickness": "abc"}]))

        result = runner.invoke(cli, ["nest", str(path)])

        assert result.exit_code == 2
        assert "thickness must be a number" in result.output

    def test_invalid_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        result = runner.invoke(cli, ["nest", str(path)])

        assert result.exit_code != 0
        assert "Invalid job file" in result.output

    def test_empty_job(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("[]")

        result = runner.invoke(cli, ["nest", str(path)])

        assert result.exit_code != 0
        assert "no boards" in result.output


class TestGapsCommand:
    """Tests for the gaps command."""

    def test_gaps_with_board(self, runner):
        result = runner.invoke(cli, ["gaps", "-b", "100,100,600,400"])

        assert result.exit_code == 0
        assert "(705, 100)" in result.output

    def test_gaps_empty_sheet(self, runner):
        result = runner.invoke(cli, ["gaps", "-w", "1000", "-h", "500"])

        assert result.exit_code == 0
        assert "(0, 0)" in result.output

    def test_no_gaps(self, runner):
        result = runner.invoke(cli, ["gaps", "-w", "500", "-h", "500", "-b", "0,0,450,450"])

        assert result.exit_code == 0
        assert "No gaps found" in result.output

    def test_bad_board_spec(self, runner):
        result = runner.invoke(cli, ["gaps", "-b", "1,2,3"])

        assert result.exit_code != 0
        assert "Expected X,Y,W,H" in result.output


class TestMainCommands:
    """Tests for group-level commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_status(self, runner):
        result = runner.invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "Min spacing: 5.0 mm" in result.output

    def test_status_from_environment(self, runner, monkeypatch):
        monkeypatch.setenv("SHEETNEST_MIN_SPACING", "7.5")

        result = runner.invoke(cli, ["status"])

        assert "Min spacing: 7.5 mm" in result.output
