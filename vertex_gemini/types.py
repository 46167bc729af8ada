from __future__ import annotations

import json
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class FunctionCallPart:
    name: str
    args: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionResponsePart:
    name: str
    response: Dict[str, object] = field(default_factory=dict)


Part = Union[TextPart, FunctionCallPart, FunctionResponsePart]

FunctionHandlerResult = Union[str, Awaitable[str]]
FunctionHandler = Callable[[Dict[str, str]], FunctionHandlerResult]


class FunctionDispatchError(RuntimeError):
    pass


class NotAFunctionCallError(FunctionDispatchError):
    def __init__(self) -> None:
        super().__init__("Not a function call")


class UnknownFunctionError(FunctionDispatchError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown function: {name}")
        self.name = name


class MissingFieldsError(ValueError):
    pass


def _args_from_wire(raw_args: object) -> Dict[str, str]:
    if not isinstance(raw_args, dict):
        return {}
    args: Dict[str, str] = {}
    for key, value in raw_args.items():
        # Non-string values are kept as their JSON text.
        args[str(key)] = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    return args


def part_to_dict(part: Part) -> Dict[str, object]:
    if isinstance(part, TextPart):
        return {"text": part.text}
    if isinstance(part, FunctionCallPart):
        return {"functionCall": {"name": part.name, "args": dict(part.args)}}
    if isinstance(part, FunctionResponsePart):
        return {"functionResponse": {"name": part.name, "response": dict(part.response)}}
    raise TypeError(f"Unsupported part type: {type(part).__name__}")


def part_from_dict(raw: Dict[str, object]) -> Part:
    if "text" in raw:
        return TextPart(text=str(raw["text"]))
    call = raw.get("functionCall")
    if isinstance(call, dict):
        return FunctionCallPart(name=str(call.get("name", "")), args=_args_from_wire(call.get("args")))
    reply = raw.get("functionResponse")
    if isinstance(reply, dict):
        response = reply.get("response")
        return FunctionResponsePart(
            name=str(reply.get("name", "")),
            response=dict(response) if isinstance(response, dict) else {},
        )
    raise ValueError(f"Unsupported part: {sorted(raw.keys())}")


@dataclass(frozen=True)
class Content:
    role: str
    parts: List[Part] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"role": self.role, "parts": [part_to_dict(part) for part in self.parts]}

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "Content":
        raw_parts = raw.get("parts") or []
        parts = [part_from_dict(item) for item in raw_parts if isinstance(item, dict)]
        return cls(role=str(raw.get("role", "")), parts=parts)


@dataclass(frozen=True)
class FunctionParameters:
    type: str = "object"
    properties: Dict[str, Dict[str, object]] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"type": self.type, "properties": self.properties}
        if self.required:
            payload["required"] = list(self.required)
        return payload


@dataclass(frozen=True)
class FunctionDeclaration:
    name: str
    description: str
    parameters: FunctionParameters = field(default_factory=FunctionParameters)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_dict(),
        }


@dataclass(frozen=True)
class Tool:
    function_declarations: List[FunctionDeclaration] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"functionDeclarations": [decl.to_dict() for decl in self.function_declarations]}


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
    candidate_count: int | None = None
    stop_sequences: List[str] | None = None

    def to_dict(self) -> Dict[str, object]:
        wire_names = {
            "temperature": "temperature",
            "top_p": "topP",
            "top_k": "topK",
            "max_output_tokens": "maxOutputTokens",
            "candidate_count": "candidateCount",
            "stop_sequences": "stopSequences",
        }
        payload: Dict[str, object] = {}
        for attr, wire_name in wire_names.items():
            value = getattr(self, attr)
            if value is not None:
                payload[wire_name] = value
        return payload


@dataclass(frozen=True)
class CountTokensRequest:
    contents: List[Content]

    def to_dict(self) -> Dict[str, object]:
        return {"contents": [content.to_dict() for content in self.contents]}


@dataclass(frozen=True)
class CountTokensResponse:
    total_tokens: int = 0
    total_billable_characters: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "CountTokensResponse":
        return cls(
            total_tokens=int(raw.get("totalTokens", 0) or 0),
            total_billable_characters=int(raw.get("totalBillableCharacters", 0) or 0),
        )


@dataclass(frozen=True)
class GenerateContentRequest:
    contents: List[Content]
    tools: Optional[List[Tool]] = None
    system_instruction: Content | None = None
    generation_config: GenerationConfig | None = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"contents": [content.to_dict() for content in self.contents]}
        if self.tools:
            payload["tools"] = [tool.to_dict() for tool in self.tools]
        if self.system_instruction is not None:
            payload["systemInstruction"] = self.system_instruction.to_dict()
        if self.generation_config is not None:
            payload["generationConfig"] = self.generation_config.to_dict()
        return payload


@dataclass(frozen=True)
class UsageMetadata:
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "UsageMetadata":
        return cls(
            prompt_token_count=int(raw.get("promptTokenCount", 0) or 0),
            candidates_token_count=int(raw.get("candidatesTokenCount", 0) or 0),
            total_token_count=int(raw.get("totalTokenCount", 0) or 0),
        )


@dataclass(frozen=True)
class Candidate:
    content: Content
    finish_reason: str | None = None
    index: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "Candidate":
        raw_content = raw.get("content")
        content = Content.from_dict(raw_content) if isinstance(raw_content, dict) else Content(role="model")
        finish_reason = raw.get("finishReason")
        return cls(
            content=content,
            finish_reason=str(finish_reason) if finish_reason is not None else None,
            index=int(raw.get("index", 0) or 0),
        )


@dataclass(frozen=True)
class GenerateContentResponse:
    candidates: List[Candidate] = field(default_factory=list)
    usage_metadata: UsageMetadata | None = None

    @classmethod
    def from_dict(cls, raw: Dict[str, object]) -> "GenerateContentResponse":
        raw_candidates = raw.get("candidates") or []
        raw_usage = raw.get("usageMetadata")
        return cls(
            candidates=[Candidate.from_dict(item) for item in raw_candidates if isinstance(item, dict)],
            usage_metadata=UsageMetadata.from_dict(raw_usage) if isinstance(raw_usage, dict) else None,
        )

    def text(self) -> str:
        if not self.candidates:
            return ""
        return "".join(part.text for part in self.candidates[0].content.parts if isinstance(part, TextPart))

    def function_calls(self) -> List[FunctionCallPart]:
        if not self.candidates:
            return []
        return [part for part in self.candidates[0].content.parts if isinstance(part, FunctionCallPart)]
