import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel as CannedModel

from thinkcode.config import ProviderConfig
from thinkcode.providers import (
    GenerationResult,
    MockProvider,
    ProviderError,
    create_provider,
    get_default_provider_configs,
    get_supported_provider_types,
)
from thinkcode.providers.hosted import HostedProvider, has_credential


@pytest.mark.asyncio
async def test_mock_provider_plays_script_then_default():
    provider = MockProvider(
        ["first", ProviderError("boom", retryable=True), GenerationResult(text="third")]
    )

    assert (await provider.generate_text("p1")).text == "first"
    with pytest.raises(ProviderError):
        await provider.generate_text("p2")
    assert (await provider.generate_text("p3")).text == "third"
    default = await provider.generate_text("p4")

    assert '"outputs"' in default.text
    assert default.usage.completion_tokens > 0
    assert provider.prompts == ["p1", "p2", "p3", "p4"]


@pytest.mark.asyncio
async def test_mock_provider_health():
    assert (await MockProvider().health_check())["status"] == "healthy"
    assert (await MockProvider(available=False).health_check())["status"] == "unhealthy"


def test_create_provider_mock_and_unknown():
    provider = create_provider(ProviderConfig(name="m", type="mock", model="canned"))
    assert isinstance(provider, MockProvider)
    assert provider.supported_models() == ["canned"]

    bad = ProviderConfig.model_construct(name="x", type="carrier-pigeon")
    with pytest.raises(ValueError):
        create_provider(bad)


def test_supported_types():
    assert "openai" in get_supported_provider_types()
    assert "mock" in get_supported_provider_types()


def test_default_configs_follow_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    configs = get_default_provider_configs()
    assert [c.name for c in configs] == ["openai-primary", "openai-fallback"]
    assert not any(c.enabled for c in configs)

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    configs = get_default_provider_configs()
    assert all(c.enabled and c.api_key == "sk-test" for c in configs)
    assert [c.priority for c in configs] == [1, 2]


@pytest.mark.asyncio
async def test_hosted_provider_returns_text_and_usage():
    config = ProviderConfig(name="primary", type="openai", model="gpt-4")
    provider = HostedProvider(
        config, model=CannedModel(custom_output_text='{"outputs": {"y": 10}}')
    )

    result = await provider.generate_text("Compute y")

    assert result.text == '{"outputs": {"y": 10}}'
    assert result.usage.completion_tokens > 0
    assert result.usage.prompt_tokens > 0
    assert result.usage.total_tokens == result.usage.prompt_tokens + result.usage.completion_tokens
    assert result.metadata["model"] == "gpt-4"
    assert await provider.is_available()


@pytest.mark.parametrize("status_code, retryable", [(429, True), (503, True), (401, False)])
@pytest.mark.asyncio
async def test_hosted_provider_maps_http_errors(status_code, retryable):
    def failing(messages: list[ModelMessage], info: AgentInfo):
        raise ModelHTTPError(status_code=status_code, model_name="gpt-4", body=None)

    config = ProviderConfig(name="primary", type="openai", model="gpt-4")
    provider = HostedProvider(config, model=FunctionModel(failing))

    with pytest.raises(ProviderError) as exc_info:
        await provider.generate_text("Compute y")

    assert exc_info.value.retryable is retryable
    assert exc_info.value.code == f"HTTP_{status_code}"


def test_hosted_provider_requires_credentials(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(Exception):
        create_provider(ProviderConfig(name="primary", type="openai"))


@pytest.mark.parametrize(
    "provider_type, env_var", [("openai", "OPENAI_API_KEY"), ("groq", "GROQ_API_KEY")]
)
def test_credential_detection(monkeypatch, provider_type, env_var):
    monkeypatch.delenv(env_var, raising=False)
    config = ProviderConfig(name="hosted", type=provider_type)
    assert not has_credential(config)

    monkeypatch.setenv(env_var, "secret")
    assert has_credential(config)
    monkeypatch.delenv(env_var)

    assert has_credential(config.model_copy(update={"api_key": "inline"}))
    assert has_credential(config.model_copy(update={"endpoint": "http://localhost:11434/v1"}))


@pytest.mark.asyncio
async def test_hosted_provider_unhealthy_without_credential(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    provider = create_provider(ProviderConfig(name="primary", type="openai", api_key="sk-test"))
    assert (await provider.health_check())["status"] == "healthy"

    provider.config.api_key = None
    assert not await provider.is_available()
    assert (await provider.health_check())["status"] == "unhealthy"
