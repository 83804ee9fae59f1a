"""Tests for the command-line runner."""

import json
import sys

import pytest

from catchup_src import runner
from catchup_src.config import Config


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "request.json"
    path.write_text(json.dumps({
        "birthDate": "2022-01-01",
        "currentDate": "2025-07-02",
        "vaccineHistory": [
            {"vaccineName": "DTaP", "doses": [{"date": "2022-03-01"}]},
        ],
    }))
    return path


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["vaccine-catchup", *args])
    return runner.main()


# =============================================================================
# Tests
# =============================================================================

class TestRunner:
    """Test CLI output and exit codes."""

    def test_text_output(self, monkeypatch, capsys, request_file):
        assert run_cli(monkeypatch, str(request_file)) == 0
        out = capsys.readouterr().out
        assert "CATCH-UP RECOMMENDATIONS (CDC" in out
        assert "Pneumococcal (PCV): Give 1 dose PCV (prefer PCV20) to complete series" in out

    def test_json_output(self, monkeypatch, capsys, request_file):
        assert run_cli(monkeypatch, str(request_file), "--json") == 0
        data = json.loads(capsys.readouterr().out)
        names = [r["vaccineName"] for r in data["recommendations"]]
        assert "DTaP" in names
        assert names == sorted(names, key=str.lower)

    def test_date_override(self, monkeypatch, capsys, request_file):
        assert run_cli(monkeypatch, str(request_file), "--json", "--date", "2025-01-01") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["patientAge"] == "3 years"

    def test_bad_date_exit_code(self, monkeypatch, request_file):
        assert run_cli(monkeypatch, str(request_file), "--date", "07/02/2025") == 2

    def test_bad_flag_exit_code(self, monkeypatch, tmp_path):
        path = tmp_path / "flags.json"
        path.write_text(json.dumps({
            "birthDate": "2022-01-01",
            "specialConditions": {"asplenia": "maybe"},
        }))
        assert run_cli(monkeypatch, str(path)) == 2

    def test_save_requires_db_path(self, monkeypatch, request_file):
        monkeypatch.setattr(Config, "CATCHUP_DB_PATH", None)
        assert run_cli(monkeypatch, str(request_file), "--save") == 2

    def test_save_and_list_recent(self, monkeypatch, capsys, tmp_path, request_file):
        monkeypatch.setattr(Config, "CATCHUP_DB_PATH", str(tmp_path / "catchup.db"))
        assert run_cli(monkeypatch, str(request_file), "--save") == 0
        capsys.readouterr()

        assert run_cli(monkeypatch, "--recent", "5") == 0
        out = capsys.readouterr().out
        assert "born 2022-01-01" in out

    def test_list_recent_empty(self, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr(Config, "CATCHUP_DB_PATH", str(tmp_path / "empty.db"))
        assert run_cli(monkeypatch, "--recent", "5") == 0
        assert "No stored results." in capsys.readouterr().out
