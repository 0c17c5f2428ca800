"""
Tests for the command-line entry point.
"""

import json

import pytest
import yaml

from retention.run import main

NOW_ARG = "2026-03-15T12:00:00Z"


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def snapshot_file(tmp_path, member_snapshot):
    path = tmp_path / "snapshot.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(member_snapshot, f)
    return path


class TestCli:
    """retention-predict"""

    def test_no_input_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_scoped_report_from_snapshot(self, snapshot_file, capsys):
        code = main([str(snapshot_file), "--scope", "revenue", "--now", NOW_ARG])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert list(payload) == ["revenue"]
        assert payload["revenue"]["projected_next_month"] == 250

    def test_member_recommendation(self, snapshot_file, capsys):
        code = main([str(snapshot_file), "--member", "FADING", "--now", NOW_ARG])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["member"]["name"] == "Ada Lovelace"
        assert payload["analysis"]["risk_tier"] == "high"

    def test_unknown_member_exit_code(self, snapshot_file, capsys):
        assert main([str(snapshot_file), "--member", "NOBODY", "--now", NOW_ARG]) == 2
        assert "Member not found: NOBODY" in capsys.readouterr().err

    def test_missing_snapshot_exit_code(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.yaml")]) == 3
        assert "Cannot read snapshot" in capsys.readouterr().err

    def test_sample_report_to_file(self, tmp_path):
        output = tmp_path / "report.json"
        code = main(["--sample", "25", "--now", NOW_ARG, "--output", str(output)])

        assert code == 0
        report = json.loads(output.read_text())
        assert set(report) == {"churn", "engagement", "content", "revenue", "recommendations"}

    def test_config_override(self, snapshot_file, tmp_path, capsys):
        config_path = tmp_path / "retention.yaml"
        config_path.write_text("churn_report_limit: 1\n")

        main([str(snapshot_file), "--scope", "churn", "--config", str(config_path), "--now", NOW_ARG])

        churn = json.loads(capsys.readouterr().out)["churn"]
        assert len(churn["members"]) == 1
        assert churn["at_risk_count"] == 3
