from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Dict
from urllib import request

from .registry import FunctionRegistry
from .types import (
    Content,
    CountTokensRequest,
    CountTokensResponse,
    FunctionCallPart,
    FunctionDeclaration,
    FunctionHandler,
    FunctionParameters,
    FunctionResponsePart,
    GenerateContentRequest,
    GenerateContentResponse,
    MissingFieldsError,
    Part,
    TextPart,
)

BASE_URL = "https://{location}-aiplatform.googleapis.com/v1beta1/projects"


@dataclass(frozen=True)
class GeminiClient:
    transport: request.OpenerDirector
    project_id: str
    model: str
    location: str
    api_key: str = field(repr=False)
    logger: logging.Logger | None = field(default=None, repr=False, compare=False)
    functions: FunctionRegistry = field(default=None, repr=False, compare=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.functions is None:
            object.__setattr__(self, "functions", FunctionRegistry(logger=self.logger))

    @staticmethod
    def builder() -> "GeminiClientBuilder":
        return GeminiClientBuilder()

    def endpoint_url(self, operation: str) -> str:
        base_url = BASE_URL.format(location=self.location)
        return (
            f"{base_url}/{self.project_id}/locations/{self.location}"
            f"/models/{self.model}:{operation}?key={self.api_key}"
        )

    async def count_tokens(self, count_request: CountTokensRequest) -> CountTokensResponse:
        data = await asyncio.to_thread(self._post_sync, "countTokens", count_request.to_dict())
        return CountTokensResponse.from_dict(data)

    async def generate_content(self, generate_request: GenerateContentRequest) -> GenerateContentResponse:
        data = await asyncio.to_thread(self._post_sync, "generateContent", generate_request.to_dict())
        return GenerateContentResponse.from_dict(data)

    def _post_sync(self, operation: str, payload: Dict[str, object]) -> Dict[str, object]:
        if self.logger:
            self.logger.debug(
                "%s model=%s payload: %s",
                operation,
                self.model,
                json.dumps(payload, ensure_ascii=False, indent=2),
            )

        req = request.Request(
            url=self.endpoint_url(operation),
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        with self.transport.open(req) as resp:
            data = json.loads(resp.read().decode("utf-8"))

        if self.logger:
            self.logger.debug("%s raw response: %s", operation, json.dumps(data, ensure_ascii=False, indent=2))
        return data

    async def register_function(self, name: str, function: FunctionHandler) -> None:
        await self.functions.register(name, function)

    async def execute_function_call(self, function_call: Part) -> str:
        return await self.functions.dispatch(function_call)

    @staticmethod
    def create_text_content(role: str, text: str) -> Content:
        return Content(role=role, parts=[TextPart(text=text)])

    @staticmethod
    def create_function_call_content(role: str, name: str, args: Dict[str, str]) -> Content:
        return Content(role=role, parts=[FunctionCallPart(name=name, args=dict(args))])

    @staticmethod
    def create_function_response_content(role: str, name: str, response: Dict[str, object]) -> Content:
        return Content(role=role, parts=[FunctionResponsePart(name=name, response=dict(response))])

    @staticmethod
    def create_function_declaration(
        name: str,
        description: str,
        parameters: FunctionParameters,
    ) -> FunctionDeclaration:
        return FunctionDeclaration(name=name, description=description, parameters=parameters)


class GeminiClientBuilder:
    def __init__(self) -> None:
        self._transport: request.OpenerDirector | None = None
        self._project_id: str | None = None
        self._model: str | None = None
        self._location: str | None = None
        self._api_key: str | None = None
        self._logger: logging.Logger | None = None

    def transport(self, transport: request.OpenerDirector) -> "GeminiClientBuilder":
        self._transport = transport
        return self

    def client(self, transport: request.OpenerDirector) -> "GeminiClientBuilder":
        return self.transport(transport)

    def project_id(self, project_id: str) -> "GeminiClientBuilder":
        self._project_id = project_id
        return self

    def model(self, model: str) -> "GeminiClientBuilder":
        self._model = model
        return self

    def location(self, location: str) -> "GeminiClientBuilder":
        self._location = location
        return self

    def api_key(self, api_key: str) -> "GeminiClientBuilder":
        self._api_key = api_key
        return self

    def logger(self, logger: logging.Logger) -> "GeminiClientBuilder":
        self._logger = logger
        return self

    def build(self) -> GeminiClient:
        required = (self._transport, self._project_id, self._model, self._location, self._api_key)
        if any(value is None for value in required):
            raise MissingFieldsError("Missing required fields to build GeminiClient")
        return GeminiClient(
            transport=self._transport,  # type: ignore[arg-type]
            project_id=self._project_id,  # type: ignore[arg-type]
            model=self._model,  # type: ignore[arg-type]
            location=self._location,  # type: ignore[arg-type]
            api_key=self._api_key,  # type: ignore[arg-type]
            logger=self._logger,
        )
