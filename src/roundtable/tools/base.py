from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from roundtable.errors import InvalidParametersError
from roundtable.orchestration.context import RunContext


@dataclass(frozen=True)
class ParameterSpec:
    """
    Declared shape of one tool parameter.

    - type: JSON schema type ("string", "number", "boolean", ...)
    - enum: allowed values, if restricted
    """
    type: str
    description: str
    required: bool = False
    enum: List[str] = field(default_factory=list)


class Tool(ABC):
    """
    Something an agent can call on the model's request.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def description(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def parameters(self) -> Dict[str, ParameterSpec]:
        raise NotImplementedError

    @abstractmethod
    def execute(self, ctx: RunContext, params: Mapping[str, Any]) -> Any:
        """Run the tool. The result is turned into text by the caller."""
        raise NotImplementedError


class BaseTool(Tool):
    """
    Holds name/description/parameter specs and validates arguments.

    Subclasses declare parameters in `__init__` via `add_parameter` and
    implement `execute`.
    """

    def __init__(self, name: str, description: str) -> None:
        self._name = name
        self._description = description
        self._parameters: Dict[str, ParameterSpec] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> Dict[str, ParameterSpec]:
        return dict(self._parameters)

    def add_parameter(self, name: str, spec: ParameterSpec) -> None:
        self._parameters[name] = spec

    def required_parameters(self) -> List[str]:
        return [name for name, spec in self._parameters.items() if spec.required]

    def validate_params(self, params: Mapping[str, Any]) -> None:
        for name in self.required_parameters():
            if name not in params:
                raise InvalidParametersError(f"missing required parameter: {name}")
        for name, spec in self._parameters.items():
            if spec.enum and name in params and params[name] not in spec.enum:
                raise InvalidParametersError(
                    f"invalid value for '{name}': {params[name]!r} "
                    f"(allowed: {', '.join(spec.enum)})"
                )


def to_tool_def(tool: Tool) -> Dict[str, Any]:
    """
    OpenAI-style function schema, understood by both Groq and Ollama.
    """
    properties: Dict[str, Any] = {}
    for name, spec in tool.parameters.items():
        prop: Dict[str, Any] = {"type": spec.type, "description": spec.description}
        if spec.enum:
            prop["enum"] = list(spec.enum)
        properties[name] = prop

    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": [n for n, s in tool.parameters.items() if s.required],
            },
        },
    }
