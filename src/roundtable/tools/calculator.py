from __future__ import annotations

from typing import Any, Mapping

from roundtable.errors import InvalidParametersError
from roundtable.orchestration.context import RunContext
from roundtable.tools.base import BaseTool, ParameterSpec


_OPERATIONS = ["add", "subtract", "multiply", "divide"]


def _number(params: Mapping[str, Any], key: str) -> float:
    value = params[key]
    # bool is an int subclass; it is not a number here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParametersError(f"invalid parameter '{key}': must be a number")
    return float(value)


class CalculatorTool(BaseTool):
    """Basic arithmetic on two numbers."""

    def __init__(self) -> None:
        super().__init__("calculator", "Perform basic arithmetic on two numbers")
        self.add_parameter("a", ParameterSpec(type="number", description="First number", required=True))
        self.add_parameter("b", ParameterSpec(type="number", description="Second number", required=True))
        self.add_parameter(
            "operation",
            ParameterSpec(
                type="string",
                description="Operation to apply (add/subtract/multiply/divide)",
                required=True,
                enum=list(_OPERATIONS),
            ),
        )

    def execute(self, ctx: RunContext, params: Mapping[str, Any]) -> float:
        self.validate_params(params)
        a = _number(params, "a")
        b = _number(params, "b")
        operation = params["operation"]

        if operation == "add":
            return a + b
        if operation == "subtract":
            return a - b
        if operation == "multiply":
            return a * b
        if b == 0:
            raise InvalidParametersError("division by zero")
        return a / b
