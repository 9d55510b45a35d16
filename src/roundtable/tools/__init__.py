# src/roundtable/tools/__init__.py

from .base import BaseTool, ParameterSpec, Tool
from .calculator import CalculatorTool
from .registry import ToolRegistry

__all__ = ["BaseTool", "CalculatorTool", "ParameterSpec", "Tool", "ToolRegistry"]
