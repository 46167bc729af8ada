from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from vertex_gemini.client import GeminiClient
from vertex_gemini.tool_base import BaseTool
from vertex_gemini.types import Tool

from .calculate_tool import CalculateTool
from .get_current_time_tool import GetCurrentTimeTool


def get_default_tools() -> List[BaseTool]:
    return [CalculateTool(), GetCurrentTimeTool()]


def build_tool_index(tools: Sequence[BaseTool]) -> Dict[str, BaseTool]:
    index: Dict[str, BaseTool] = {}
    for tool in tools:
        if tool.name in index:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        index[tool.name] = tool
    return index


def tools_for_names(tool_names: Iterable[str]) -> List[BaseTool]:
    by_name = build_tool_index(get_default_tools())
    result: List[BaseTool] = []
    for name in tool_names:
        if name not in by_name:
            raise ValueError(f"Unknown tool name: {name}")
        result.append(by_name[name])
    return result


def tool_config(tools: Sequence[BaseTool]) -> Tool:
    return Tool(function_declarations=[tool.to_declaration() for tool in tools])


async def register_tools(client: GeminiClient, tools: Sequence[BaseTool]) -> None:
    for tool in build_tool_index(tools).values():
        await client.register_function(tool.name, tool.handler)
