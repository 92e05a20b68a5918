import asyncio
import json

import pytest
from typer.testing import CliRunner

import thinkcode.persistence as persistence
from thinkcode.cli import app
from thinkcode.contracts import StepStatus
from thinkcode.persistence import InMemoryStepRepository


@pytest.fixture
def cli_repo(tmp_path, monkeypatch, seed_step):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "execution:\n"
        "  max_retries: 0\n"
        "providers:\n"
        "  - name: offline\n"
        "    type: mock\n"
        "    priority: 1\n"
    )
    monkeypatch.setenv("THINKCODE_CONFIG", str(config_path))
    monkeypatch.delenv("THINKCODE_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    repo = InMemoryStepRepository()
    monkeypatch.setattr(persistence, "_repository_instance", repo)
    asyncio.run(seed_step(repo))
    return repo


def test_step_list_and_show(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["step", "list"])
    assert result.exit_code == 0, result.stdout
    assert "S1" in result.stdout
    assert "pending" in result.stdout

    result = runner.invoke(app, ["step", "show", "S1"])
    assert result.exit_code == 0, result.stdout
    assert "Design API" in result.stdout
    assert "new-project" in result.stdout

    missing = runner.invoke(app, ["step", "show", "missing"])
    assert missing.exit_code == 1
    assert "Step not found" in missing.stdout


def test_step_run_prints_outputs(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["step", "run", "S1", "--inputs", '{"x": 7}'])

    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["outputs"] == {"result": "mock result"}
    assert payload["metadata"]["provider"] == "mock"
    assert "prompt" not in payload["metadata"]
    step = asyncio.run(cli_repo.get_step("S1"))
    assert step.status == StepStatus.COMPLETED


def test_step_run_reports_failure(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["step", "run", "unknown"])

    assert result.exit_code == 1
    assert "STEP_NOT_FOUND" in result.stdout


def test_step_and_agent_add(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["agent", "add", "A2", "Reviewer", "--capabilities", "review,qa"])
    assert result.exit_code == 0, result.stdout

    result = runner.invoke(
        app,
        ["step", "add", "S2", "Review", "--workflow", "W2", "--agent", "A2", "--inputs", '{"pr": 12}'],
    )
    assert result.exit_code == 0, result.stdout

    step = asyncio.run(cli_repo.get_step("S2"))
    assert step.assigned_agent_id == "A2"
    assert json.loads(step.inputs) == {"pr": 12}
    assert asyncio.run(cli_repo.get_agent("A2")).capabilities == "review,qa"


def test_invalid_json_option_is_rejected(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["step", "run", "S1", "--inputs", "{not json"])

    assert result.exit_code == 2
    assert "Invalid JSON" in result.stdout


def test_provider_list_and_check(cli_repo):
    runner = CliRunner()

    result = runner.invoke(app, ["provider", "list"])
    assert result.exit_code == 0, result.stdout
    assert "offline" in result.stdout
    assert "enabled" in result.stdout

    result = runner.invoke(app, ["provider", "check"])
    assert result.exit_code == 0, result.stdout
    assert "offline\thealthy" in result.stdout
