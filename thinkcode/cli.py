"""Command line interface for running and inspecting workflow steps."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import typer

from thinkcode import TaskExecutionEngine, get_repository, load_config
from thinkcode.persistence import AgentRecord, StepRecord
from thinkcode.providers import create_provider, get_default_provider_configs

app = typer.Typer(help="CLI for thinkcode step execution")

# Command groups
step_app = typer.Typer(help="Commands for executing and inspecting steps")
agent_app = typer.Typer(help="Commands for managing agents")
provider_app = typer.Typer(help="Commands for inspecting ML providers")

app.add_typer(step_app, name="step")
app.add_typer(agent_app, name="agent")
app.add_typer(provider_app, name="provider")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """thinkcode CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_json_option(value: Optional[str], option: str) -> dict:
    if not value:
        return {}
    try:
        decoded = json.loads(value)
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid JSON for {option}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    if not isinstance(decoded, dict):
        typer.secho(f"{option} must be a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return decoded


@agent_app.command("add")
def agent_add(
    agent_id: str,
    name: str,
    capabilities: Optional[str] = typer.Option(
        None, help="JSON list or comma separated capabilities"
    ),
) -> None:
    """Register an agent that steps can be assigned to."""
    repo = get_repository()
    asyncio.run(
        repo.create_agent(AgentRecord(id=agent_id, name=name, capabilities=capabilities))
    )
    typer.echo(f"Agent {agent_id} added")


@step_app.command("add")
def step_add(
    step_id: str,
    name: str,
    workflow_id: str = typer.Option(..., "--workflow", help="Owning workflow id"),
    agent_id: Optional[str] = typer.Option(None, "--agent", help="Assigned agent id"),
    description: Optional[str] = None,
    workflow_type: Optional[str] = None,
    step_number: int = 1,
    inputs: Optional[str] = typer.Option(None, help="Step inputs as a JSON object"),
) -> None:
    """Create a pending workflow step."""
    decoded = _parse_json_option(inputs, "--inputs")
    repo = get_repository()
    asyncio.run(
        repo.create_step(
            StepRecord(
                id=step_id,
                workflow_id=workflow_id,
                workflow_type=workflow_type,
                step_number=step_number,
                name=name,
                description=description,
                assigned_agent_id=agent_id,
                inputs=json.dumps(decoded) if decoded else None,
            )
        )
    )
    typer.echo(f"Step {step_id} added")


@step_app.command("list")
def step_list() -> None:
    """
    List all steps with their current status.

    Example:
        thinkcode step list
        # Output: s1    wf-1    completed    Design API
    """
    repo = get_repository()
    steps = asyncio.run(repo.list_steps())
    if not steps:
        typer.echo("No steps found")
        return
    for step in steps:
        typer.echo(f"{step.id}\t{step.workflow_id}\t{step.status.value}\t{step.name}")


@step_app.command("show")
def step_show(step_id: str) -> None:
    """Show stored details, outputs and errors for a step."""
    repo = get_repository()
    step = asyncio.run(repo.get_step(step_id))
    if step is None:
        typer.echo("Step not found")
        raise typer.Exit(code=1)
    typer.echo(f"Step {step.id}: {step.status.value}")
    typer.echo(f"Name: {step.name}")
    typer.echo(f"Workflow: {step.workflow_id} ({step.workflow_type or 'unspecified'})")
    typer.echo(f"Agent: {step.assigned_agent_id or '(none)'}")
    if step.started_at:
        typer.echo(f"Started: {step.started_at:%Y-%m-%d %H:%M:%S}")
    if step.completed_at:
        typer.echo(f"Finished: {step.completed_at:%Y-%m-%d %H:%M:%S}")
    if step.inputs:
        typer.echo(f"Inputs: {step.inputs}")
    if step.outputs:
        typer.echo(f"Outputs: {step.outputs}")
    if step.errors:
        typer.echo(f"Errors: {step.errors}")


@step_app.command("run")
def step_run(
    step_id: str,
    inputs: Optional[str] = typer.Option(
        None, help="JSON object merged over the stored step inputs"
    ),
) -> None:
    """
    Execute a step with its assigned agent and print the result.

    Retries retryable failures with exponential backoff (2s, 4s, 8s by
    default). Exits with code 1 when the step fails.

    Example:
        thinkcode step run s1 --inputs '{"x": 5}'
    """
    overrides = {"inputs": _parse_json_option(inputs, "--inputs")}
    engine = TaskExecutionEngine.from_config(repository=get_repository())
    result = asyncio.run(engine.execute_step(step_id, overrides))
    if result.success:
        data = result.data.model_dump(mode="json")
        data["metadata"].pop("prompt", None)
        typer.echo(json.dumps(data, indent=2))
        return
    typer.secho(
        f"{result.error.code.value}: {result.error.message}", fg=typer.colors.RED
    )
    raise typer.Exit(code=1)


def _configured_providers():
    config = load_config()
    providers = config.providers or get_default_provider_configs()
    return sorted(providers, key=lambda p: p.priority)


@provider_app.command("list")
def provider_list() -> None:
    """List configured provider candidates in resolution order."""
    for provider in _configured_providers():
        state = "enabled" if provider.enabled else "disabled"
        typer.echo(
            f"{provider.priority}\t{provider.name}\t{provider.type}\t"
            f"{provider.model or '-'}\t{state}"
        )


@provider_app.command("check")
def provider_check() -> None:
    """Instantiate every enabled provider and report its health."""
    for config in _configured_providers():
        if not config.enabled:
            continue
        try:
            provider = create_provider(config)
            health = asyncio.run(provider.health_check())
        except Exception as exc:
            typer.secho(f"{config.name}\tunhealthy\t{exc}", fg=typer.colors.RED)
            continue
        typer.echo(f"{config.name}\t{health['status']}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
