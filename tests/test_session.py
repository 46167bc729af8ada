from __future__ import annotations

import json
import unittest
from urllib.error import URLError

from gemini_tools.registry import get_default_tools, register_tools, tool_config
from vertex_gemini.client import GeminiClient
from vertex_gemini.session import ChatSession
from vertex_gemini.types import FunctionCallPart, FunctionResponsePart, TextPart


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def read(self) -> bytes:
        return self._body


class ScriptedTransport:
    def __init__(self, *payloads: object) -> None:
        self.payloads = list(payloads)
        self.sent: list[dict] = []

    def open(self, req):  # type: ignore[no-untyped-def]
        self.sent.append(json.loads(req.data.decode("utf-8")))
        payload = self.payloads.pop(0)
        if isinstance(payload, Exception):
            raise payload
        return FakeResponse(json.dumps(payload).encode("utf-8"))


def _model_turn(*parts: dict) -> dict:
    return {
        "candidates": [{"content": {"role": "model", "parts": list(parts)}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 4, "totalTokenCount": 14},
    }


def _client(transport: ScriptedTransport) -> GeminiClient:
    return (
        GeminiClient.builder()
        .transport(transport)  # type: ignore[arg-type]
        .project_id("proj")
        .model("gemini-pro")
        .location("us-central1")
        .api_key("k")
        .build()
    )


class ChatSessionTests(unittest.IsolatedAsyncioTestCase):
    async def test_function_call_round_trip(self) -> None:
        transport = ScriptedTransport(
            _model_turn({"functionCall": {"name": "calculate", "args": {"expression": "(2+3)*4"}}}),
            _model_turn({"text": "The answer is 20."}),
        )
        client = _client(transport)
        tools = get_default_tools()
        await register_tools(client, tools)
        traces: list[str] = []
        session = ChatSession(client=client, tools=[tool_config(tools)], trace_callback=traces.append)

        text = await session.run_turn("what is (2+3)*4?")

        self.assertEqual(text, "The answer is 20.")
        roles = [content.role for content in session.get_history()]
        self.assertEqual(roles, ["user", "model", "user", "model"])
        self.assertEqual(
            session.get_history()[2].parts,
            [FunctionResponsePart(name="calculate", response={"result": "20"})],
        )
        second_request = transport.sent[1]
        self.assertEqual(
            second_request["contents"][2]["parts"][0],
            {"functionResponse": {"name": "calculate", "response": {"result": "20"}}},
        )
        self.assertIn("functionDeclarations", second_request["tools"][0])
        self.assertTrue(any(line.startswith("[FUNCTION CALL] calculate") for line in traces))
        assert session.state.last_usage is not None
        self.assertEqual(session.state.last_usage.total_token_count, 14)

    async def test_unknown_function_is_reported_back_to_model(self) -> None:
        transport = ScriptedTransport(
            _model_turn({"functionCall": {"name": "missing", "args": {}}}),
            _model_turn({"text": "Sorry."}),
        )
        session = ChatSession(client=_client(transport))

        self.assertEqual(await session.run_turn("do it"), "Sorry.")
        reply = session.get_history()[2].parts[0]
        self.assertEqual(reply, FunctionResponsePart(name="missing", response={"error": "Unknown function: missing"}))

    async def test_handler_errors_are_reported_back_to_model(self) -> None:
        transport = ScriptedTransport(
            _model_turn({"functionCall": {"name": "calculate", "args": {"expression": "__import__('os')"}}}),
            _model_turn({"text": "Cannot compute."}),
        )
        client = _client(transport)
        await register_tools(client, get_default_tools())
        session = ChatSession(client=client)

        await session.run_turn("hack")
        reply = session.get_history()[2].parts[0]
        assert isinstance(reply, FunctionResponsePart)
        self.assertIn("Function execution error", str(reply.response["error"]))

    async def test_round_limit_stops_the_loop(self) -> None:
        call = {"functionCall": {"name": "get_current_time", "args": {}}}
        transport = ScriptedTransport(_model_turn(call), _model_turn(call))
        client = _client(transport)
        await register_tools(client, get_default_tools())
        session = ChatSession(client=client, max_function_rounds=2)

        text = await session.run_turn("loop forever")

        self.assertIn("max_function_rounds=2", text)
        self.assertEqual(len(transport.sent), 2)
        self.assertEqual(session.get_history()[-1].parts, [TextPart(text=text)])

    async def test_system_prompt_and_token_count(self) -> None:
        transport = ScriptedTransport(_model_turn({"text": "hi"}), {"totalTokens": 9})
        session = ChatSession(client=_client(transport), system_prompt="be brief")

        await session.run_turn("hello")
        total = await session.count_tokens()

        self.assertEqual(transport.sent[0]["systemInstruction"]["parts"], [{"text": "be brief"}])
        self.assertEqual(total, 9)
        self.assertEqual(len(transport.sent[1]["contents"]), 2)

        session.reset()
        self.assertEqual(session.get_history(), [])

    async def test_model_text_with_function_call_keeps_calling(self) -> None:
        transport = ScriptedTransport(
            _model_turn({"text": "checking"}, {"functionCall": {"name": "calculate", "args": {"expression": "1+1"}}}),
            _model_turn({"text": "2"}),
        )
        client = _client(transport)
        await register_tools(client, get_default_tools())
        session = ChatSession(client=client)

        self.assertEqual(await session.run_turn("1+1"), "2")
        self.assertEqual(
            session.get_history()[1].parts[1],
            FunctionCallPart(name="calculate", args={"expression": "1+1"}),
        )

    async def test_blocked_candidate_is_not_kept_in_history(self) -> None:
        transport = ScriptedTransport(
            {"candidates": [{"finishReason": "SAFETY"}]},
            _model_turn({"text": "hello again"}),
        )
        session = ChatSession(client=_client(transport))

        text = await session.run_turn("hello")

        self.assertIn("finish_reason=SAFETY", text)
        self.assertEqual(session.get_history(), [])

        self.assertEqual(await session.run_turn("hello"), "hello again")
        second_request = transport.sent[1]
        self.assertEqual(second_request["contents"], [{"role": "user", "parts": [{"text": "hello"}]}])
        self.assertTrue(all(content["parts"] for content in second_request["contents"]))

    async def test_response_without_candidates_discards_the_turn(self) -> None:
        transport = ScriptedTransport(_model_turn({"text": "first"}), {"promptFeedback": {"blockReason": "OTHER"}})
        session = ChatSession(client=_client(transport))

        await session.run_turn("one")
        text = await session.run_turn("two")

        self.assertIn("finish_reason=unknown", text)
        self.assertEqual([content.role for content in session.get_history()], ["user", "model"])

    async def test_transport_error_mid_turn_rolls_back_history(self) -> None:
        transport = ScriptedTransport(
            _model_turn({"text": "earlier"}),
            _model_turn({"functionCall": {"name": "calculate", "args": {"expression": "1+1"}}}),
            URLError("connection reset"),
        )
        client = _client(transport)
        await register_tools(client, get_default_tools())
        session = ChatSession(client=client)
        await session.run_turn("warm up")

        with self.assertRaises(URLError):
            await session.run_turn("1+1")

        self.assertEqual([content.role for content in session.get_history()], ["user", "model"])
        self.assertEqual(session.get_history()[1].parts, [TextPart(text="earlier")])


if __name__ == "__main__":
    unittest.main()
