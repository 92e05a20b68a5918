from thinkcode.contracts import ExecutionContext
from thinkcode.persistence import AgentRecord, StepRecord
from thinkcode.prompts import build_execution_prompt, parse_capabilities, parse_inputs


def _fixtures(description="Build the REST layer"):
    step = StepRecord(
        id="S1",
        workflow_id="W1",
        step_number=3,
        name="Design API",
        description=description,
    )
    agent = AgentRecord(id="A1", name="Backend Developer", capabilities="python, sql")
    context = ExecutionContext(
        workflow_id="W1",
        step_id="S1",
        agent_id="A1",
        inputs={"x": 5, "nested": {"a": [1, 2]}},
        metadata={"workflow_type": "new-project"},
    )
    return step, agent, context


def test_prompt_is_deterministic():
    step, agent, context = _fixtures()
    assert build_execution_prompt(step, agent, context) == build_execution_prompt(
        step, agent, context
    )


def test_prompt_renders_fields_in_order():
    prompt = build_execution_prompt(*_fixtures())

    markers = [
        "You are Backend Developer, an AI agent with the following capabilities: python, sql.",
        "- Workflow: new-project",
        "- Step: Design API",
        "- Description: Build the REST layer",
        "- Step Number: 3",
        '"x": 5',
        "KNOWLEDGE CONTEXT:",
        '"actions_taken"',
        '"recommendations"',
    ]
    positions = [prompt.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_prompt_placeholders_for_missing_fields():
    step, agent, context = _fixtures(description=None)
    agent = agent.model_copy(update={"capabilities": None})
    context = context.model_copy(update={"metadata": {}})

    prompt = build_execution_prompt(step, agent, context)

    assert "- Description: No description provided" in prompt
    assert "capabilities: general." in prompt
    assert "- Workflow: unspecified" in prompt


def test_parse_capabilities_variants():
    assert parse_capabilities(None) == ["general"]
    assert parse_capabilities("") == ["general"]
    assert parse_capabilities('["a", "b"]') == ["a", "b"]
    assert parse_capabilities(" a , b ,") == ["a", "b"]
    assert parse_capabilities('{"not": "a list"}') == ['{"not": "a list"}']


def test_parse_inputs_variants():
    assert parse_inputs(None) == {}
    assert parse_inputs('{"x": 5}') == {"x": 5}
    assert parse_inputs("plain text") == {"raw": "plain text"}
    assert parse_inputs("[1, 2]") == {"raw": "[1, 2]"}
