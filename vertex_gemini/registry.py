from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Dict, List

from .types import FunctionCallPart, FunctionHandler, NotAFunctionCallError, Part, UnknownFunctionError


class FunctionRegistry:
    """
    Name -> handler mapping shared by every task using one client.
    The lock is held while a handler runs, so handlers must not call back into the registry.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._functions: Dict[str, FunctionHandler] = {}
        self._lock = asyncio.Lock()
        self.logger = logger

    async def register(self, name: str, handler: FunctionHandler) -> None:
        async with self._lock:
            replaced = name in self._functions
            self._functions[name] = handler
        if self.logger:
            self.logger.info("register function name=%s replaced=%s", name, replaced)

    async def dispatch(self, part: Part) -> str:
        if not isinstance(part, FunctionCallPart):
            raise NotAFunctionCallError()

        async with self._lock:
            handler = self._functions.get(part.name)
            if handler is None:
                raise UnknownFunctionError(part.name)
            if self.logger:
                self.logger.info("dispatch function name=%s", part.name)
            result = handler(dict(part.args))
            if inspect.isawaitable(result):
                result = await result
        return result

    async def names(self) -> List[str]:
        async with self._lock:
            return sorted(self._functions.keys())

    async def contains(self, name: str) -> bool:
        async with self._lock:
            return name in self._functions

    async def size(self) -> int:
        async with self._lock:
            return len(self._functions)
