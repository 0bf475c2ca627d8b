"""
Unit tests for the calculator and current-time tools.
"""

import pytest

from application.services.tools.handlers.computation import (
    CalculatorTool,
    CurrentTimeTool,
    UnsafeExpressionError,
    evaluate_expression,
    format_number,
    preprocess_expression,
)


class TestPreprocess:
    """Test calculator shorthand rewriting."""

    def test_percent_of(self):
        """Test 'X% of Y'."""
        assert preprocess_expression("12% of 250") == "(12/100)*250"

    def test_bare_percent(self):
        """Test a lone percentage."""
        assert preprocess_expression("50%") == "(50/100)"

    def test_caret_is_power(self):
        """Test '^' becomes '**'."""
        assert preprocess_expression("2 ^ 10") == "2**10"


class TestEvaluate:
    """Test the restricted evaluator."""

    def test_functions_and_constants(self):
        """Test sqrt and pi."""
        assert evaluate_expression("sqrt(144)") == 12.0
        assert evaluate_expression("pi") == pytest.approx(3.14159265)

    def test_rejects_names(self):
        """Test that arbitrary names are refused."""
        with pytest.raises(UnsafeExpressionError):
            evaluate_expression("__import__('os')")

    def test_rejects_attribute_access(self):
        """Test that attribute access is refused."""
        with pytest.raises(UnsafeExpressionError):
            evaluate_expression("(1).real")


class TestFormatNumber:
    """Test result formatting."""

    def test_integer(self):
        """Test thousands separators."""
        assert format_number(1234567) == "1,234,567"

    def test_fraction(self):
        """Test trailing zeros are trimmed."""
        assert format_number(1234.5) == "1,234.5"


class TestCalculatorTool:
    """Test the calculate tool."""

    @pytest.mark.asyncio
    async def test_percentage(self):
        """Test '12% of 250' = 30."""
        result = await CalculatorTool().execute({"expression": "12% of 250"})

        assert result.success
        assert result.data == {"expression": "12% of 250", "result": 30, "formatted": "30"}

    @pytest.mark.asyncio
    async def test_power(self):
        """Test 2^10."""
        result = await CalculatorTool().execute({"expression": "2^10"})
        assert result.data["result"] == 1024

    @pytest.mark.asyncio
    async def test_division_by_zero(self):
        """Test division by zero fails cleanly."""
        result = await CalculatorTool().execute({"expression": "1/0"})

        assert not result.success
        assert result.error == "Invalid calculation result"

    @pytest.mark.asyncio
    async def test_unsafe_expression(self):
        """Test non-arithmetic input is refused."""
        result = await CalculatorTool().execute({"expression": "open('x')"})

        assert not result.success
        assert result.error == "Invalid expression"

    @pytest.mark.asyncio
    async def test_syntax_error(self):
        """Test unparseable input."""
        result = await CalculatorTool().execute({"expression": "2 +"})

        assert not result.success
        assert result.error == "Could not evaluate expression"


class TestCurrentTimeTool:
    """Test the current-time tool."""

    @pytest.mark.asyncio
    async def test_default_timezone(self):
        """Test Kigali is the default and Kinyarwanda names are included."""
        result = await CurrentTimeTool().execute({})

        assert result.success
        assert result.data["timezone"] == "Africa/Kigali"
        assert result.data["iso"].endswith("Z")
        assert result.data["kinyarwanda"]["day"].startswith("Ku ")

    @pytest.mark.asyncio
    async def test_time_format(self):
        """Test the time-only format."""
        result = await CurrentTimeTool().execute({"timezone": "UTC", "format": "time"})
        assert result.data["formatted"].endswith(("AM", "PM"))

    @pytest.mark.asyncio
    async def test_invalid_timezone(self):
        """Test an unknown timezone fails."""
        result = await CurrentTimeTool().execute({"timezone": "Mars/Olympus"})

        assert not result.success
        assert result.error == "Invalid timezone"
