"""Pure computation tools: calculator and current time."""

import ast
import logging
import math
import operator
import re
from datetime import datetime, timezone
from typing import Any, Dict, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from application.services.tools.base import ToolHandler, ToolResult

logger = logging.getLogger(__name__)

Number = Union[int, float]

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_CONSTANTS = {"pi": math.pi, "e": math.e}

_FUNCTIONS = {"sqrt": math.sqrt, "pow": math.pow}


class UnsafeExpressionError(ValueError):
    """Expression contains something other than arithmetic."""


def preprocess_expression(expression: str) -> str:
    """Rewrite calculator shorthand into a Python arithmetic expression.

    ``15% of 200`` becomes ``(15/100)*200``, a bare ``X%`` becomes
    ``(X/100)`` and ``^`` becomes ``**``.
    """
    processed = re.sub(r"\s+", "", expression.lower())
    processed = re.sub(r"(\d+(?:\.\d+)?)%of(\d+(?:\.\d+)?)", r"(\1/100)*\2", processed)
    processed = re.sub(r"(\d+(?:\.\d+)?)%", r"(\1/100)", processed)
    return processed.replace("^", "**")


def evaluate_expression(expression: str) -> float:
    """Evaluate an arithmetic expression without ``eval``.

    Raises:
        SyntaxError: If the expression does not parse
        UnsafeExpressionError: If it uses anything but numbers, + - * / **,
            ``pi``, ``e``, ``sqrt`` and ``pow``
        ArithmeticError, ValueError: On math domain or overflow errors
    """
    tree = ast.parse(expression, mode="eval")
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return float(node.value)
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        return _BINARY_OPERATORS[type(node.op)](_eval_node(node.left), _eval_node(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_eval_node(node.operand))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and not node.keywords
    ):
        return _FUNCTIONS[node.func.id](*(_eval_node(arg) for arg in node.args))
    raise UnsafeExpressionError(ast.dump(node))


def format_number(value: Number) -> str:
    """Thousands separators; at most 6 fraction digits for non-integers."""
    if isinstance(value, int) or float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.6f}".rstrip("0").rstrip(".")


class CalculatorTool(ToolHandler):
    name = "calculate"
    description = (
        "Perform mathematical calculations. Use this for any math operations including "
        "basic arithmetic, percentages, square roots, powers, etc."
    )
    parameters = {
        "type": "object",
        "properties": {
            "expression": {
                "type": "string",
                "description": (
                    'The mathematical expression to evaluate, e.g., "2 + 2", '
                    '"15% of 200", "sqrt(144)", "2^10"'
                ),
            },
        },
        "required": ["expression"],
    }

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        expression = str(args.get("expression") or "")
        processed = preprocess_expression(expression)

        try:
            value = evaluate_expression(processed)
        except UnsafeExpressionError:
            return ToolResult.failure("Invalid expression")
        except (ArithmeticError, ValueError, TypeError):
            return ToolResult.failure("Invalid calculation result")
        except (SyntaxError, RecursionError):
            return ToolResult.failure("Could not evaluate expression")

        if not isinstance(value, float) or not math.isfinite(value):
            return ToolResult.failure("Invalid calculation result")

        rounded: Number = round(value, 10)
        if float(rounded).is_integer():
            rounded = int(rounded)

        return ToolResult.ok(
            {
                "expression": expression,
                "result": rounded,
                "formatted": format_number(rounded),
            }
        )


KINYARWANDA_DAYS = [
    "Ku cyumweru", "Ku wa mbere", "Ku wa kabiri", "Ku wa gatatu",
    "Ku wa kane", "Ku wa gatanu", "Ku wa gatandatu",
]
KINYARWANDA_MONTHS = [
    "Mutarama", "Gashyantare", "Werurwe", "Mata", "Gicurasi", "Kamena",
    "Nyakanga", "Kanama", "Nzeri", "Ukwakira", "Ugushyingo", "Ukuboza",
]

_TIME_FORMATS = {
    "full": "%A, %d %B %Y at %I:%M:%S %p",
    "date": "%A, %d %B %Y",
    "time": "%I:%M:%S %p",
}

DEFAULT_TIMEZONE = "Africa/Kigali"


class CurrentTimeTool(ToolHandler):
    name = "get_current_time"
    description = (
        "Get the current date and time. Default timezone is Africa/Kigali (CAT - Central "
        "Africa Time). Use when users ask what time or date it is."
    )
    parameters = {
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": 'Timezone name, e.g., "Africa/Kigali", "UTC", "America/New_York"',
            },
            "format": {
                "type": "string",
                "enum": ["full", "date", "time"],
                "description": "Output format: full (date and time), date only, or time only",
            },
        },
        "required": [],
    }

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        tz_name = args.get("timezone") or DEFAULT_TIMEZONE
        output_format = args.get("format") or "full"

        try:
            tz = ZoneInfo(str(tz_name))
        except (ZoneInfoNotFoundError, ValueError, OSError):
            logger.warning(f"Invalid timezone requested: {tz_name}")
            return ToolResult.failure("Invalid timezone")

        now = datetime.now(timezone.utc)
        local = now.astimezone(tz)
        pattern = _TIME_FORMATS.get(output_format, _TIME_FORMATS["full"])

        # weekday() is Monday-based; the Kinyarwanda list starts on Sunday
        day_index = (local.weekday() + 1) % 7

        return ToolResult.ok(
            {
                "formatted": local.strftime(pattern),
                "timezone": tz_name,
                "iso": now.isoformat().replace("+00:00", "Z"),
                "kinyarwanda": {
                    "day": KINYARWANDA_DAYS[day_index],
                    "month": KINYARWANDA_MONTHS[local.month - 1],
                },
                "unix": int(now.timestamp()),
            }
        )
