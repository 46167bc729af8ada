from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib import request

from .client import GeminiClient

DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_LOCATION = "us-central1"


@dataclass(frozen=True)
class GeminiConfig:
    project_id: str
    model: str
    location: str = DEFAULT_LOCATION
    api_key_env: str | None = None
    api_key: str | None = None
    max_function_rounds: int = 8
    system_prompt: str | None = None

    def resolve_api_key(self) -> str:
        if self.api_key and self.api_key.strip():
            return self.api_key.strip()

        if self.api_key_env:
            api_key_from_env = os.environ.get(self.api_key_env, "").strip()
            if api_key_from_env:
                return api_key_from_env

        fallback = os.environ.get(DEFAULT_API_KEY_ENV, "").strip()
        if fallback:
            return fallback

        env_name = self.api_key_env or DEFAULT_API_KEY_ENV
        raise ValueError(
            f"Missing API key. Set config.api_key, or set env var {env_name} (or {DEFAULT_API_KEY_ENV}).",
        )


_ENV_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _is_env_var_name(value: str) -> bool:
    return bool(_ENV_NAME_PATTERN.match(value))


def _optional_str(raw: dict, key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def load_config(path: str) -> GeminiConfig:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    api_key = _optional_str(raw, "api_key")

    api_key_env: str | None = None
    candidate = _optional_str(raw, "api_key_env")
    if candidate:
        if _is_env_var_name(candidate):
            api_key_env = candidate
        elif api_key is None:
            # A value that cannot be an env var name is taken as the key itself.
            api_key = candidate

    if api_key_env is None:
        api_key_env = DEFAULT_API_KEY_ENV

    rounds_raw = raw.get("max_function_rounds", 8)
    try:
        max_function_rounds = int(rounds_raw)
    except (TypeError, ValueError):
        max_function_rounds = 8
    max_function_rounds = max(1, max_function_rounds)

    return GeminiConfig(
        project_id=str(raw["project_id"]),
        model=str(raw["model"]),
        location=_optional_str(raw, "location") or DEFAULT_LOCATION,
        api_key_env=api_key_env,
        api_key=api_key,
        max_function_rounds=max_function_rounds,
        system_prompt=_optional_str(raw, "system_prompt"),
    )


def build_client(
    config: GeminiConfig,
    *,
    transport: request.OpenerDirector | None = None,
    logger: logging.Logger | None = None,
) -> GeminiClient:
    builder = (
        GeminiClient.builder()
        .transport(transport if transport is not None else request.build_opener())
        .project_id(config.project_id)
        .model(config.model)
        .location(config.location)
        .api_key(config.resolve_api_key())
    )
    if logger is not None:
        builder.logger(logger)
    return builder.build()
