from .client import BASE_URL, GeminiClient, GeminiClientBuilder
from .config import GeminiConfig, build_client, load_config
from .logging_utils import create_session_logger
from .registry import FunctionRegistry
from .session import ChatSession
from .tool_base import BaseTool
from .types import (
    Candidate,
    Content,
    CountTokensRequest,
    CountTokensResponse,
    FunctionCallPart,
    FunctionDeclaration,
    FunctionDispatchError,
    FunctionParameters,
    FunctionResponsePart,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    MissingFieldsError,
    NotAFunctionCallError,
    Part,
    TextPart,
    Tool,
    UnknownFunctionError,
    UsageMetadata,
)

__all__ = [
    "BASE_URL",
    "BaseTool",
    "Candidate",
    "ChatSession",
    "Content",
    "CountTokensRequest",
    "CountTokensResponse",
    "FunctionCallPart",
    "FunctionDeclaration",
    "FunctionDispatchError",
    "FunctionParameters",
    "FunctionRegistry",
    "FunctionResponsePart",
    "GeminiClient",
    "GeminiClientBuilder",
    "GeminiConfig",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "MissingFieldsError",
    "NotAFunctionCallError",
    "Part",
    "TextPart",
    "Tool",
    "UnknownFunctionError",
    "UsageMetadata",
    "build_client",
    "create_session_logger",
    "load_config",
]
