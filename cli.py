#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json

from prompt_toolkit import PromptSession

from gemini_tools.registry import get_default_tools, register_tools, tool_config
from vertex_gemini.config import build_client, load_config
from vertex_gemini.logging_utils import create_session_logger
from vertex_gemini.session import ChatSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive chat against a Vertex AI Gemini model")
    parser.add_argument("--config", default="./configs/example.json")
    parser.add_argument("--log-dir", default="./logs", help="Directory for session log files")
    parser.add_argument("--debug", action="store_true", help="Echo session log lines to stderr")
    parser.add_argument("--no-tools", action="store_true", help="Do not declare or register built-in tools")
    return parser


async def async_main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    cfg = load_config(args.config)
    logger, log_path = create_session_logger(log_dir=args.log_dir, debug=args.debug)
    logger.info("startup project=%s model=%s location=%s", cfg.project_id, cfg.model, cfg.location)

    client = build_client(cfg, logger=logger)
    tools = [] if args.no_tools else get_default_tools()
    await register_tools(client, tools)

    session = ChatSession(
        client=client,
        tools=[tool_config(tools)] if tools else None,
        system_prompt=cfg.system_prompt,
        max_function_rounds=cfg.max_function_rounds,
        trace_callback=print,
    )

    print(f"vertex-gemini chat started | model={cfg.model} | location={cfg.location}")
    print(f"log file: {log_path}")
    print("Commands: /quit, /tokens, /history, /tools, /reset")

    prompt = PromptSession()
    while True:
        try:
            user_input = (await prompt.prompt_async("> ")).strip()
        except (EOFError, KeyboardInterrupt):
            return 0
        if not user_input:
            continue
        if user_input == "/quit":
            return 0
        if user_input == "/reset":
            session.reset()
            logger.info("history reset")
            print("History cleared.")
            continue
        if user_input == "/tools":
            names = await client.functions.names()
            print(", ".join(names) if names else "(no functions registered)")
            continue
        if user_input == "/history":
            print(json.dumps([item.to_dict() for item in session.get_history()], ensure_ascii=False, indent=2))
            continue
        if user_input == "/tokens":
            if not session.get_history():
                print("History is empty.")
                continue
            try:
                total = await session.count_tokens()
            except Exception as err:  # noqa: BLE001
                logger.exception("count tokens failed")
                print(f"[error] {err}")
                continue
            print(f"[TOKENS] history total={total}")
            continue

        logger.info("user turn chars=%d", len(user_input))
        try:
            answer = await session.run_turn(user_input)
        except Exception as err:  # noqa: BLE001
            logger.exception("turn failed")
            print(f"[error] {err}")
            continue
        print(answer)
        usage = session.state.last_usage
        if usage is not None:
            print(
                f"[TOKENS] prompt={usage.prompt_token_count} "
                f"candidates={usage.candidates_token_count} total={usage.total_token_count}",
            )


def main() -> int:
    return asyncio.run(async_main())


if __name__ == "__main__":
    raise SystemExit(main())
