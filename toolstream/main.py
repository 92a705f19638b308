"""Entry point: run one model turn from the command line and print the parsed blocks.

Usage:
  toolstream "List the files in src"
  toolstream --config my.yaml --system "You are a coding assistant." "Read main.py"
  toolstream --list-models          # OpenAI-compatible providers only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import TYPE_CHECKING

from toolstream.config import get_config
from toolstream.core.logging_config import setup_logging

if TYPE_CHECKING:
    from toolstream.config.loader import Config
    from toolstream.core.turn import Turn

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful coding assistant."


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stream one model turn and print text and tool-use blocks.")
    parser.add_argument("prompt", nargs="?", default="", help="User message for this turn.")
    parser.add_argument("--config", default=None, help="Path to a YAML config (default: packaged default.yaml).")
    parser.add_argument("--system", default=DEFAULT_SYSTEM_PROMPT, help="System prompt.")
    parser.add_argument("--list-models", action="store_true", help="List models of the OpenAI-compatible endpoint.")
    return parser


def _print_turn(turn: Turn) -> None:
    if turn.reasoning:
        print(json.dumps({"type": "reasoning", "text": turn.reasoning}, ensure_ascii=False))
    for block in turn.blocks:
        print(json.dumps(asdict(block), ensure_ascii=False))
    print(json.dumps({"type": "usage", **turn.usage.model_dump()}))


async def run_turn(config: Config, prompt: str, system_prompt: str) -> Turn:
    from toolstream.core.turn import Turn
    from toolstream.models.gateway import build_api_handler
    from toolstream.models.messages import Message
    from toolstream.parsing.vocabulary import vocabulary_from_names

    handler = build_api_handler(config.model)
    vocabulary = vocabulary_from_names(config.parser.tool_names, config.parser.param_names)
    turn = Turn(
        handler,
        system_prompt,
        [Message(role="user", content=prompt)],
        vocabulary=vocabulary,
    )
    return await turn.run()


async def list_models(config: Config) -> list[str]:
    from toolstream.models.openai import list_openai_models

    return await list_openai_models(config.model.openai_base_url, config.model.openai_api_key)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = get_config(args.config)
    setup_logging(level=config.logging.level, use_json=config.logging.json_format)

    if args.list_models:
        for model_id in asyncio.run(list_models(config)):
            print(model_id)
        return 0
    if not args.prompt.strip():
        logger.error("prompt is required")
        return 2
    try:
        turn = asyncio.run(run_turn(config, args.prompt, args.system))
    except ValueError as e:
        logger.error("configuration error: %s", e)
        return 2
    _print_turn(turn)
    if turn.failed:
        print(json.dumps({"type": "error", "message": str(turn.error)}), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
