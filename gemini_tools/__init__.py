from .calculate_tool import CalculateTool
from .get_current_time_tool import GetCurrentTimeTool
from .registry import build_tool_index, get_default_tools, register_tools, tool_config, tools_for_names

__all__ = [
    "CalculateTool",
    "GetCurrentTimeTool",
    "build_tool_index",
    "get_default_tools",
    "register_tools",
    "tool_config",
    "tools_for_names",
]
