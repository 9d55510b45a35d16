import json

import pytest

from conftest import FakeAgent
from roundtable.agents.chain_agent import ChainAgent
from roundtable.agents.tool_agent import ToolAgent
from roundtable.errors import InvalidParametersError, ToolNotFoundError
from roundtable.orchestration.callbacks import RecordingCallback
from roundtable.tools import BaseTool, CalculatorTool, ParameterSpec, ToolRegistry
from roundtable.tools.base import to_tool_def


class EchoTool(BaseTool):
    def __init__(self):
        super().__init__("echo", "Repeat a word")
        self.add_parameter("word", ParameterSpec(type="string", description="Word", required=True))
        self.add_parameter(
            "mood",
            ParameterSpec(type="string", description="Tone", enum=["calm", "loud"]),
        )

    def execute(self, ctx, params):
        self.validate_params(params)
        word = params["word"]
        return {"echo": word.upper() if params.get("mood") == "loud" else word}


@pytest.mark.parametrize(
    "operation, expected",
    [("add", 5.0), ("subtract", -1.0), ("multiply", 6.0), ("divide", 2 / 3)],
)
def test_calculator_operations(ctx, operation, expected):
    result = CalculatorTool().execute(ctx, {"a": 2, "b": 3, "operation": operation})
    assert result == pytest.approx(expected)


@pytest.mark.parametrize(
    "params, message",
    [
        ({"a": 1, "b": 0, "operation": "divide"}, "division by zero"),
        ({"a": 1, "operation": "add"}, "missing required parameter: b"),
        ({"a": 1, "b": 2, "operation": "power"}, "invalid value for 'operation'"),
        ({"a": "1", "b": 2, "operation": "add"}, "must be a number"),
        ({"a": True, "b": 2, "operation": "add"}, "must be a number"),
    ],
)
def test_calculator_rejects_bad_input(ctx, params, message):
    with pytest.raises(InvalidParametersError, match=message):
        CalculatorTool().execute(ctx, params)


def test_optional_enum_parameter_may_be_omitted(ctx):
    assert EchoTool().execute(ctx, {"word": "hi"}) == {"echo": "hi"}
    assert EchoTool().required_parameters() == ["word"]


def test_tool_definition_schema():
    definition = to_tool_def(EchoTool())

    assert definition["type"] == "function"
    function = definition["function"]
    assert function["name"] == "echo"
    assert function["parameters"]["required"] == ["word"]
    assert function["parameters"]["properties"]["mood"] == {
        "type": "string",
        "description": "Tone",
        "enum": ["calm", "loud"],
    }
    assert "enum" not in function["parameters"]["properties"]["word"]


def test_registry_lookup():
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.register(CalculatorTool())

    assert registry.names() == ["calculator", "echo"]
    assert [t.name for t in registry.tools()] == ["echo", "calculator"]
    assert "echo" in registry
    assert len(registry) == 2
    assert registry.get("calculator").name == "calculator"
    with pytest.raises(ToolNotFoundError, match="tool not found: search"):
        registry.get("search")


def test_tool_agent_runs_the_tool_on_json_input(ctx):
    callback = RecordingCallback()
    agent = ToolAgent(EchoTool(), name="shouter")
    agent.bind_callback(callback)

    result = agent.execute(ctx, json.dumps({"word": "hey", "mood": "loud"}))

    assert json.loads(result) == {"echo": "HEY"}
    assert callback.contents["shouter"] == [result]
    assert agent.capabilities == ("echo",)
    assert agent.description == "Repeat a word"


@pytest.mark.parametrize("text", ["not json", "[1, 2]"])
def test_tool_agent_rejects_non_object_input(ctx, text):
    with pytest.raises(InvalidParametersError):
        ToolAgent(CalculatorTool()).execute(ctx, text)


def test_chain_agent_pipes_output_through_members(ctx):
    first = FakeAgent("first", capabilities=["testing"], reply=lambda t: t + " +1")
    second = FakeAgent("second", capabilities=["testing", "security"], reply=lambda t: t + " +2")
    chain = ChainAgent("pipeline", [first, second], max_rounds=2)

    assert chain.execute(ctx, "x") == "x +1 +2 +1 +2"
    assert second.inputs == ["x +1", "x +1 +2 +1"]
    assert chain.capabilities == ("testing", "security")


def test_chain_agent_shares_its_callback_with_members():
    callback = RecordingCallback()
    member = FakeAgent("member")
    chain = ChainAgent("pipeline", [member])
    chain.bind_callback(callback)
    assert member.callback is callback


def test_chain_agent_needs_members():
    with pytest.raises(ValueError):
        ChainAgent("empty", [])
