"""Tool handler implementations."""

from application.services.tools.handlers.code import CodeExecutionTool
from application.services.tools.handlers.computation import CalculatorTool, CurrentTimeTool
from application.services.tools.handlers.lookups import (
    CurrencyTool,
    NewsTool,
    PlacesTool,
    TranslateTool,
    WeatherTool,
    WebSearchTool,
)
from application.services.tools.handlers.media import ImageGenerationTool, VideoGenerationTool
from application.services.tools.handlers.workflow import WorkflowTool, build_workflow_tools

__all__ = [
    "CalculatorTool",
    "CodeExecutionTool",
    "CurrencyTool",
    "CurrentTimeTool",
    "ImageGenerationTool",
    "NewsTool",
    "PlacesTool",
    "TranslateTool",
    "VideoGenerationTool",
    "WeatherTool",
    "WebSearchTool",
    "WorkflowTool",
    "build_workflow_tools",
]
