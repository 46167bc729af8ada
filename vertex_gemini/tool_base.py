from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

from .types import FunctionDeclaration, FunctionHandlerResult, FunctionParameters


class BaseTool(ABC):
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
    def parameters(self) -> FunctionParameters:
        raise NotImplementedError

    @abstractmethod
    def handler(self, args: Dict[str, str]) -> FunctionHandlerResult:
        raise NotImplementedError

    def to_declaration(self) -> FunctionDeclaration:
        return FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )
