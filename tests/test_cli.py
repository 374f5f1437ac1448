"""Tests for mempro_analyzer.cli.main."""

import json
import os
import tempfile

import pytest
from click.testing import CliRunner

from mempro_analyzer.cli.main import _DEFAULT_JSON_PATH, _resolve_json_path, cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def sample_export():
    """Create a temporary MemPro export JSON."""
    data = {
        "SessionName": "cli_session",
        "TotalSnapshots": 1,
        "TotalAllocations": 300,
        "TotalSize": 1_000_000,
        "LeakCount": 3,
        "LeakSize": 600_000,
        "MemoryFragmentation": 85.0,
        "Functions": [
            {
                "FunctionName": "DecodeImage",
                "FileName": "image.cpp",
                "LineNumber": 40,
                "AllocationCount": 3,
                "TotalSize": 45_000,
                "AverageSize": 15_000.0,
                "MinSize": 1000,
                "MaxSize": 120_000,
                "Percentage": 4.5,
            },
        ],
        "Leaks": [
            {
                "FunctionName": "Unknown Function at 0x1234",
                "LeakSize": 5000,
                "LeakCount": 1,
                "LeakScore": 0.2,
                "IsSuspect": False,
            },
            {
                "FunctionName": "std::vector<int>::push_back",
                "FileName": "vector",
                "LineNumber": 120,
                "LeakSize": 595_000,
                "LeakCount": 2,
                "LeakScore": 0.95,
                "CallStack": "main > Update > push_back",
                "IsSuspect": True,
            },
        ],
    }
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".json", delete=False,
    ) as f:
        json.dump(data, f)
        path = f.name
    yield path
    os.unlink(path)


class TestCLIGroup:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "MemPro Memory Analyzer" in result.output


class TestPathResolution:
    def test_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("MEMPRO_JSON_PATH", "/env/path.json")
        assert _resolve_json_path("/explicit.json") == "/explicit.json"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("MEMPRO_JSON_PATH", "/env/path.json")
        assert _resolve_json_path(None) == "/env/path.json"
        assert _resolve_json_path("") == "/env/path.json"

    def test_default_fallback(self, monkeypatch):
        monkeypatch.delenv("MEMPRO_JSON_PATH", raising=False)
        assert _resolve_json_path(None) == _DEFAULT_JSON_PATH

    def test_env_used_by_commands(self, runner, sample_export):
        result = runner.invoke(
            cli, ["get-summary"], env={"MEMPRO_JSON_PATH": sample_export},
        )
        assert result.exit_code == 0
        assert "Session: cli_session" in result.output


class TestAnalyzeLeaksCommand:
    def test_json_output(self, runner, sample_export):
        result = runner.invoke(cli, ["analyze-leaks", "--json-path", sample_export])
        assert result.exit_code == 0
        issues = json.loads(result.output)
        assert [i["severity"] for i in issues] == ["Critical", "Low"]
        assert issues[0]["functionName"] == "std::vector<int>::push_back"
        assert "debug symbols" in issues[1]["suggestion"]

    def test_terminal_output(self, runner, sample_export):
        result = runner.invoke(
            cli, ["analyze-leaks", "--json-path", sample_export, "--format", "terminal"],
        )
        assert result.exit_code == 0
        assert "Memory Leaks (2)" in result.output

    def test_missing_file(self, runner):
        result = runner.invoke(cli, ["analyze-leaks", "--json-path", "/nonexistent/path.json"])
        assert result.exit_code == 1
        assert "Failed to analyze" in result.output

    def test_malformed_file(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        result = runner.invoke(cli, ["analyze-leaks", "--json-path", str(bad)])
        assert result.exit_code == 1
        assert "failed to parse JSON" in result.output


class TestOtherIssueCommands:
    def test_fragmentation(self, runner, sample_export):
        result = runner.invoke(cli, ["analyze-fragmentation", "--json-path", sample_export])
        assert result.exit_code == 0
        (issue,) = json.loads(result.output)
        assert issue["severity"] == "High"
        assert issue["type"] == "MemoryFragmentation"

    def test_large_allocations(self, runner, sample_export):
        result = runner.invoke(cli, ["find-large-allocations", "--json-path", sample_export])
        assert result.exit_code == 0
        (issue,) = json.loads(result.output)
        assert issue["severity"] == "High"
        assert issue["functionName"] == "DecodeImage"

    def test_all_issues(self, runner, sample_export):
        result = runner.invoke(cli, ["get-all-issues", "--json-path", sample_export])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert "CRITICAL" in data["summary"]
        assert len(data["leaks"]) == 2
        assert len(data["fragmentation"]) == 1
        assert len(data["large_allocations"]) == 1

    def test_all_issues_to_file(self, runner, sample_export, tmp_path):
        out = tmp_path / "report.json"
        result = runner.invoke(
            cli, ["get-all-issues", "--json-path", sample_export, "--output", str(out)],
        )
        assert result.exit_code == 0
        assert out.exists()
        assert json.loads(out.read_text())["stats"]["session"] == "cli_session"


class TestReportCommands:
    def test_summary_verbatim(self, runner, sample_export):
        result = runner.invoke(cli, ["get-summary", "--json-path", sample_export])
        assert result.exit_code == 0
        assert result.output.startswith("Memory Analysis Summary\n")
        assert "- CRITICAL: Over 50% of allocated memory is leaked!" in result.output
        assert "- HIGH: Severe memory fragmentation detected" in result.output
        assert "- 1 suspect leak locations identified" in result.output

    def test_top_leakers_default(self, runner, sample_export):
        result = runner.invoke(cli, ["get-top-leakers", "--json-path", sample_export])
        assert result.exit_code == 0
        assert result.output.startswith("Top 2 Memory Leakers:")
        assert "1. std::vector<int>::push_back" in result.output

    def test_top_leakers_count(self, runner, sample_export):
        result = runner.invoke(
            cli, ["get-top-leakers", "--json-path", sample_export, "--count", "1"],
        )
        assert result.exit_code == 0
        assert result.output.startswith("Top 1 Memory Leakers:")
        assert "2. " not in result.output

    def test_stats(self, runner, sample_export):
        result = runner.invoke(cli, ["stats", "--json-path", sample_export])
        assert result.exit_code == 0
        stats = json.loads(result.output)
        assert stats["session"] == "cli_session"
        assert stats["leak_percentage"] == pytest.approx(60.0)

    def test_full_terminal_report(self, runner, sample_export):
        result = runner.invoke(cli, ["report", "--json-path", sample_export])
        assert result.exit_code == 0
        assert "Large Allocations (1)" in result.output
