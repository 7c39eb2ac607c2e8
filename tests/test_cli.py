"""Tests for the skchecklist command line."""

import json

import pytest
from click.testing import CliRunner

from skchecklist.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def checklist_file(tmp_path, inspection_definition):
    path = tmp_path / "inspection.json"
    path.write_text(json.dumps(inspection_definition))
    return str(path)


def _write(tmp_path, name: str, data) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return str(path)


class TestCheck:
    """skchecklist check"""

    def test_valid(self, runner, checklist_file):
        result = runner.invoke(main, ["check", checklist_file])
        assert result.exit_code == 0, result.output
        assert "Vehicle Inspection" in result.output
        assert "Checklist is valid." in result.output

    def test_invalid(self, runner, tmp_path, inspection_definition):
        inspection_definition["title"] = ""
        path = _write(tmp_path, "bad.json", inspection_definition)
        result = runner.invoke(main, ["check", path])
        assert result.exit_code == 1
        assert "Invalid checklist" in result.output
        assert "Title is required" in result.output

    def test_warnings(self, runner, tmp_path, inspection_definition):
        inspection_definition["items"][1]["visibility_condition"]["field_name"] = "ghost"
        path = _write(tmp_path, "warn.json", inspection_definition)
        result = runner.invoke(main, ["check", path])
        assert result.exit_code == 0
        assert "Warnings" in result.output

    def test_allow_empty_description(self, runner, tmp_path, inspection_definition):
        inspection_definition["description"] = ""
        path = _write(tmp_path, "nodesc.json", inspection_definition)
        assert runner.invoke(main, ["check", path]).exit_code == 1
        result = runner.invoke(main, ["--allow-empty-description", "check", path])
        assert result.exit_code == 0, result.output


class TestPreview:
    """skchecklist preview"""

    def test_missing(self, runner, checklist_file):
        result = runner.invoke(main, ["preview", checklist_file])
        assert result.exit_code == 1
        assert "MISSING" in result.output
        assert "2 required field(s) missing" in result.output

    def test_ready(self, runner, tmp_path, checklist_file):
        responses = _write(tmp_path, "r.json", {"contact": "a@b.c", "condition": "good"})
        result = runner.invoke(main, ["preview", checklist_file, "--responses", responses])
        assert result.exit_code == 0, result.output
        assert "Ready to sign." in result.output

    @pytest.mark.parametrize("payload", [["contact"], "good", 3])
    def test_responses_not_an_object(self, runner, tmp_path, checklist_file, payload):
        responses = _write(tmp_path, "r.json", payload)
        result = runner.invoke(main, ["preview", checklist_file, "--responses", responses])
        assert result.exit_code == 1
        assert "must be a JSON object" in result.output
        assert not isinstance(result.exception, AttributeError)


class TestCopy:
    """skchecklist copy"""

    def test_stdout(self, runner, checklist_file):
        result = runner.invoke(main, ["copy", checklist_file, "--title", "Inspection v2"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["title"] == "Inspection v2"
        assert data["token"] != "insp-token-0001"

    def test_to_file(self, runner, tmp_path, checklist_file):
        output = tmp_path / "copy.json"
        result = runner.invoke(main, ["copy", checklist_file, "-o", str(output), "--keep-ids"])
        assert result.exit_code == 0, result.output
        assert "Checklist copied!" in result.output
        data = json.loads(output.read_text())
        assert data["token"] != "insp-token-0001"
        assert [item["id"] for item in data["items"]] == ["1", "2", "3", "6"]


class TestAssemble:
    """skchecklist assemble"""

    def test_payload(self, runner, tmp_path, checklist_file):
        responses = _write(tmp_path, "r.json", {"contact": "a@b.c", "condition": "good"})
        result = runner.invoke(
            main,
            [
                "assemble", checklist_file,
                "--token", "link-1",
                "--responses", responses,
                "--signature", "Chef",
                "--user-agent", "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["signatureData"] == "Chef"
        assert data["isMobile"] == 1
        assert data["deviceOs"] == "iOS"

    def test_missing_signature(self, runner, tmp_path, checklist_file):
        responses = _write(tmp_path, "r.json", {"contact": "a@b.c", "condition": "good"})
        result = runner.invoke(
            main, ["assemble", checklist_file, "--token", "link-1", "--responses", responses]
        )
        assert result.exit_code == 1
        assert "Please provide your signature" in result.output

    def test_missing_fields(self, runner, tmp_path, checklist_file):
        responses = _write(tmp_path, "r.json", {})
        result = runner.invoke(
            main,
            ["assemble", checklist_file, "--token", "t", "--responses", responses, "--signature", "C"],
        )
        assert result.exit_code == 1
        assert "Contact email is required" in result.output

    def test_responses_not_an_object(self, runner, tmp_path, checklist_file):
        responses = _write(tmp_path, "r.json", [{"contact": "a@b.c"}])
        result = runner.invoke(
            main,
            ["assemble", checklist_file, "--token", "t", "--responses", responses, "--signature", "C"],
        )
        assert result.exit_code == 1
        assert "must be a JSON object" in result.output
