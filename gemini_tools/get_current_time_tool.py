from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict
from zoneinfo import ZoneInfo

from vertex_gemini.tool_base import BaseTool
from vertex_gemini.types import FunctionParameters


class GetCurrentTimeTool(BaseTool):
    @property
    def name(self) -> str:
        return "get_current_time"

    @property
    def description(self) -> str:
        return "Return the current timestamp in ISO-8601 format, in UTC unless an IANA timezone is given."

    @property
    def parameters(self) -> FunctionParameters:
        return FunctionParameters(
            properties={
                "timezone": {
                    "type": "string",
                    "description": "Optional IANA timezone name, e.g. 'Europe/Paris'",
                },
            },
        )

    def handler(self, args: Dict[str, str]) -> str:
        zone_name = args.get("timezone", "").strip()
        zone = ZoneInfo(zone_name) if zone_name else timezone.utc
        return datetime.now(zone).isoformat()
