from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .client import GeminiClient
from .types import (
    Content,
    CountTokensRequest,
    FunctionDispatchError,
    FunctionResponsePart,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    TextPart,
    Tool,
    UsageMetadata,
)


@dataclass
class ChatState:
    history: List[Content] = field(default_factory=list)
    last_usage: UsageMetadata | None = None


class ChatSession:
    """
    Caller-side conversation loop.

    The client never dispatches on its own; this class inspects each response for
    function calls, runs them through the client's registry and sends the results
    back as a user turn of function responses until the model answers with text
    or ``max_function_rounds`` is reached.
    """

    def __init__(
        self,
        *,
        client: GeminiClient,
        tools: Optional[List[Tool]] = None,
        system_prompt: str | None = None,
        generation_config: GenerationConfig | None = None,
        max_function_rounds: int = 8,
        trace_callback: Callable[[str], None] | None = None,
    ) -> None:
        self.client = client
        self.tools = tools
        self.system_prompt = system_prompt
        self.generation_config = generation_config
        self.max_function_rounds = max_function_rounds
        self.trace_callback = trace_callback
        self.state = ChatState()

    def get_history(self) -> List[Content]:
        return self.state.history

    def reset(self) -> None:
        self.state = ChatState()

    @staticmethod
    def _summarize_text(text: str, *, limit: int = 120) -> str:
        one_line = " ".join(text.split())
        if len(one_line) <= limit:
            return one_line
        return f"{one_line[:limit]}..."

    def _emit_trace(self, line: str) -> None:
        if self.trace_callback is not None:
            self.trace_callback(line)

    def _build_request(self) -> GenerateContentRequest:
        system_instruction = None
        if self.system_prompt:
            system_instruction = GeminiClient.create_text_content("system", self.system_prompt)
        return GenerateContentRequest(
            contents=list(self.state.history),
            tools=self.tools,
            system_instruction=system_instruction,
            generation_config=self.generation_config,
        )

    async def _call_model(self) -> GenerateContentResponse:
        response = await self.client.generate_content(self._build_request())
        if response.usage_metadata is not None:
            self.state.last_usage = response.usage_metadata
        return response

    async def _run_function_calls(self, response: GenerateContentResponse) -> Content:
        parts: List[Part] = []
        for call in response.function_calls():
            self._emit_trace(f"[FUNCTION CALL] {call.name} args={self._summarize_text(str(call.args), limit=160)}")
            reply: Dict[str, object]
            try:
                reply = {"result": await self.client.execute_function_call(call)}
            except FunctionDispatchError as err:
                reply = {"error": str(err)}
            except Exception as err:  # noqa: BLE001
                reply = {"error": f"Function execution error: {err}"}
            self._emit_trace(f"[FUNCTION RESULT] {call.name} {self._summarize_text(str(reply))}")
            parts.append(FunctionResponsePart(name=call.name, response=reply))
        return Content(role="user", parts=parts)

    async def run_turn(self, user_input: str) -> str:
        # A failed or empty turn is rolled back so the history stays sendable.
        turn_start = len(self.state.history)
        self.state.history.append(GeminiClient.create_text_content("user", user_input))

        try:
            for _ in range(self.max_function_rounds):
                response = await self._call_model()
                if not response.candidates or not response.candidates[0].content.parts:
                    del self.state.history[turn_start:]
                    finish_reason = response.candidates[0].finish_reason if response.candidates else None
                    return (
                        f"[session warning] model returned no content "
                        f"(finish_reason={finish_reason or 'unknown'}); the turn was discarded."
                    )

                self.state.history.append(response.candidates[0].content)
                if not response.function_calls():
                    return response.text()

                self.state.history.append(await self._run_function_calls(response))
        except Exception:
            del self.state.history[turn_start:]
            raise

        final_text = (
            f"[session warning] reached max_function_rounds={self.max_function_rounds}; "
            "the model kept requesting function calls without a final answer."
        )
        self.state.history.append(Content(role="model", parts=[TextPart(text=final_text)]))
        return final_text

    async def count_tokens(self) -> int:
        response = await self.client.count_tokens(CountTokensRequest(contents=list(self.state.history)))
        return response.total_tokens
