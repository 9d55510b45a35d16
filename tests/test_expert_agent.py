import json

import pytest

from conftest import FakeLLMClient
from roundtable.agents.expert_agent import (
    MAX_TOOL_ITERATIONS,
    ExpertAgent,
    ExpertConfig,
    stringify_tool_result,
)
from roundtable.errors import (
    ExecutionCancelledError,
    InvalidParametersError,
    RoundtableError,
    ToolNotFoundError,
)
from roundtable.llm.base_client import ChatResponse, ToolCall
from roundtable.memory.store import TaskContext
from roundtable.orchestration.callbacks import RecordingCallback
from roundtable.orchestration.context import RunContext
from roundtable.tools.calculator import CalculatorTool
from roundtable.tools.registry import ToolRegistry


CONFIG = ExpertConfig(
    name="developer",
    expertise="ai_development",
    description="Builds and ships machine learning systems.",
    model_alias="llama3",
)


def _calc_call(arguments, call_id="call_0", name="calculator"):
    return ChatResponse(tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)])


@pytest.fixture
def task():
    return TaskContext(task_id="expert-test")


def test_plain_answer_is_stored_in_task_memory(ctx, task):
    client = FakeLLMClient([ChatResponse(content="Ship a small model first.")])
    agent = ExpertAgent(CONFIG, client, task)

    answer = agent.execute(ctx, "What should we build?")

    assert answer == "Ship a small model first."
    assert [(m.role, m.content) for m in agent.history()] == [
        ("user", "What should we build?"),
        ("assistant", "Ship a small model first."),
    ]
    call = client.calls[0]
    assert call["tools"] is None
    assert call["model_alias"] == "llama3"
    assert [m.role for m in call["messages"]] == ["system", "user"]
    assert "expert in ai_development" in call["messages"][0].content


def test_second_call_sends_the_shared_history(ctx, task):
    client = FakeLLMClient([ChatResponse(content="first"), ChatResponse(content="second")])
    designer = ExpertAgent(
        ExpertConfig(name="designer", expertise="ui_ux_design", description="Designs flows."),
        client,
        task,
    )
    developer = ExpertAgent(CONFIG, client, task)

    designer.execute(ctx, "question one")
    developer.execute(ctx, "question two")

    sent = [(m.role, m.content) for m in client.calls[1]["messages"][1:]]
    assert sent == [
        ("user", "question one"),
        ("assistant", "first"),
        ("user", "question two"),
    ]
    assert len(developer.history()) == 4


def test_tool_loop_runs_calculator_and_feeds_result_back(ctx, task):
    client = FakeLLMClient(
        [
            _calc_call(json.dumps({"a": 6, "b": 7, "operation": "multiply"})),
            ChatResponse(content="The answer is 42."),
        ]
    )
    callback = RecordingCallback()
    agent = ExpertAgent(CONFIG, client, task)
    agent.add_tool(CalculatorTool())
    agent.bind_callback(callback)

    answer = agent.execute(ctx, "What is 6 times 7?")

    assert answer == "\nTool calculator result:\n42.0\nThe answer is 42."
    assert callback.contents["developer"] == [
        "\nTool calculator result:\n42.0\n",
        "The answer is 42.",
    ]

    first, second = client.calls
    assert first["tools"][0]["function"]["name"] == "calculator"
    follow_up = second["messages"]
    assert follow_up[-2].role == "assistant"
    assert follow_up[-2].tool_calls[0].name == "calculator"
    assert follow_up[-1].role == "tool"
    assert follow_up[-1].tool_call_id == "call_0"
    assert follow_up[-1].content == "42.0"


def test_unknown_tool_is_an_error(ctx, task):
    agent = ExpertAgent(CONFIG, FakeLLMClient([_calc_call("{}", name="weather")]), task)
    agent.add_tool(CalculatorTool())

    with pytest.raises(ToolNotFoundError, match="weather"):
        agent.execute(ctx, "Will it rain?")


@pytest.mark.parametrize("arguments", ["{not json", "[1, 2]"])
def test_malformed_tool_arguments_are_rejected(ctx, task, arguments):
    agent = ExpertAgent(CONFIG, FakeLLMClient([_calc_call(arguments)]), task)
    agent.add_tool(CalculatorTool())

    with pytest.raises(InvalidParametersError):
        agent.execute(ctx, "Compute something")


def test_endless_tool_calls_give_up(ctx, task):
    args = json.dumps({"a": 1, "b": 1, "operation": "add"})
    responses = [_calc_call(args, call_id=f"call_{i}") for i in range(MAX_TOOL_ITERATIONS)]
    agent = ExpertAgent(CONFIG, FakeLLMClient(responses), task)
    agent.add_tool(CalculatorTool())

    with pytest.raises(RoundtableError, match="tool iterations"):
        agent.execute(ctx, "Loop forever")


def test_streaming_emits_each_chunk(ctx, task):
    client = FakeLLMClient(chunks=["Start ", "small, ", "iterate."])
    callback = RecordingCallback()
    agent = ExpertAgent(CONFIG, client, task, stream=True)
    agent.bind_callback(callback)

    answer = agent.execute(ctx, "Plan?")

    assert answer == "Start small, iterate."
    assert callback.contents["developer"] == ["Start ", "small, ", "iterate."]
    assert client.calls[0]["stream"] is True
    assert agent.history()[-1].content == "Start small, iterate."


def test_streaming_is_bypassed_when_tools_are_attached(ctx, task):
    client = FakeLLMClient([ChatResponse(content="no tools needed")], chunks=["unused"])
    agent = ExpertAgent(CONFIG, client, task, stream=True)
    agent.add_tool(CalculatorTool())

    assert agent.execute(ctx, "Hi") == "no tools needed"
    assert "stream" not in client.calls[0]


def test_system_prompt_lists_tools_and_parameters(task):
    agent = ExpertAgent(CONFIG, FakeLLMClient(), task)
    assert "Tool name" not in agent.build_system_prompt()

    agent.add_tool(CalculatorTool())
    prompt = agent.build_system_prompt()

    assert "Tool name: calculator" in prompt
    assert "- a (number) [required]: First number" in prompt
    assert "Allowed values: add, subtract, multiply, divide" in prompt


def test_cancelled_context_stops_before_calling_the_model(task):
    client = FakeLLMClient()
    ctx = RunContext()
    ctx.cancel()

    with pytest.raises(ExecutionCancelledError):
        ExpertAgent(CONFIG, client, task).execute(ctx, "Anything")
    assert client.calls == []


def test_clear_task_memory(ctx, task):
    agent = ExpertAgent(CONFIG, FakeLLMClient(), task)
    agent.execute(ctx, "hello")
    agent.clear_task_memory()
    assert agent.history() == []


def test_capabilities_come_from_expertise(task):
    agent = ExpertAgent(CONFIG, FakeLLMClient(), task)
    assert agent.capabilities == ("ai_development",)
    assert agent.model_alias == "llama3"


@pytest.mark.parametrize(
    "result, expected",
    [("text", "text"), (b"raw", "raw"), ({"k": 1}, '{\n  "k": 1\n}'), (3.5, "3.5")],
)
def test_stringify_tool_result(result, expected):
    assert stringify_tool_result(result) == expected


class CancellingClient(FakeLLMClient):
    """Cancels the run while the model call is in flight."""

    def __init__(self, ctx, **kwargs):
        super().__init__(**kwargs)
        self.ctx = ctx

    def chat(self, messages, **kwargs):
        self.ctx.cancel()
        return super().chat(messages, **kwargs)

    def stream(self, messages, **kwargs):
        self.ctx.cancel()
        return super().stream(messages, **kwargs)


@pytest.mark.parametrize("stream", [False, True])
def test_answer_arriving_after_cancellation_is_not_kept(task, stream):
    ctx = RunContext()
    client = CancellingClient(ctx, responses=[ChatResponse(content="late")], chunks=[])
    agent = ExpertAgent(CONFIG, client, task, stream=stream)

    with pytest.raises(ExecutionCancelledError):
        agent.execute(ctx, "Anything")

    assert [m.role for m in agent.history()] == ["user"]


def test_run_deadline_bounds_each_model_request(task):
    client = FakeLLMClient()
    agent = ExpertAgent(CONFIG, client, task)

    agent.execute(RunContext(timeout=30), "Anything")

    assert 0 < client.calls[0]["timeout"] <= 30


def test_no_timeout_without_a_deadline(ctx, task):
    client = FakeLLMClient()
    ExpertAgent(CONFIG, client, task).execute(ctx, "Anything")
    assert "timeout" not in client.calls[0]


def test_experts_can_share_a_tool_registry(ctx, task):
    registry = ToolRegistry()
    registry.register(CalculatorTool())
    args = json.dumps({"a": 2, "b": 2, "operation": "add"})
    client = FakeLLMClient([_calc_call(args), ChatResponse(content="done")])
    agent = ExpertAgent(CONFIG, client, task, tool_registry=registry)

    assert agent.tool_registry is registry
    assert [t.name for t in agent.tools] == ["calculator"]
    assert agent.execute(ctx, "2 + 2?").startswith("\nTool calculator result:\n4.0\n")
