from __future__ import annotations

import ast
from typing import Dict

from vertex_gemini.tool_base import BaseTool
from vertex_gemini.types import FunctionParameters

MAX_EXPONENT = 100


def _exponent_value(node: ast.expr) -> float | None:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        return _exponent_value(node.operand)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return abs(node.value)
    return None


class CalculateTool(BaseTool):
    @property
    def name(self) -> str:
        return "calculate"

    @property
    def description(self) -> str:
        return "Evaluate a basic arithmetic expression and return the numeric result."

    @property
    def parameters(self) -> FunctionParameters:
        return FunctionParameters(
            properties={
                "expression": {
                    "type": "string",
                    "description": "Arithmetic expression, e.g. '(2+3)*4'",
                },
            },
            required=["expression"],
        )

    def handler(self, args: Dict[str, str]) -> str:
        expression = args.get("expression", "").strip()
        if not expression:
            raise ValueError("Missing required parameter: expression")

        parsed = ast.parse(expression, mode="eval")
        allowed_nodes = (
            ast.Expression,
            ast.BinOp,
            ast.UnaryOp,
            ast.Add,
            ast.Sub,
            ast.Mult,
            ast.Div,
            ast.FloorDiv,
            ast.Mod,
            ast.Pow,
            ast.USub,
            ast.UAdd,
            ast.Constant,
            ast.Load,
        )
        for node in ast.walk(parsed):
            if not isinstance(node, allowed_nodes):
                raise ValueError(f"Unsupported expression syntax: {type(node).__name__}")
            if isinstance(node, ast.Constant) and not isinstance(node.value, (int, float)):
                raise ValueError(f"Unsupported constant: {node.value!r}")
            if isinstance(node, ast.BinOp) and isinstance(node.op, ast.Pow):
                exponent = _exponent_value(node.right)
                if exponent is None or exponent > MAX_EXPONENT:
                    raise ValueError(f"Exponent must be a number no larger than {MAX_EXPONENT}")
                if any(isinstance(inner, ast.BinOp) and isinstance(inner.op, ast.Pow) for inner in ast.walk(node.left)):
                    raise ValueError("Nested powers are not supported")

        result = eval(compile(parsed, filename="<calc>", mode="eval"), {"__builtins__": {}}, {})
        return str(result)
