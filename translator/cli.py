#!/usr/bin/env python3
"""CLI entry point for the local translator."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from translator.api import is_error
from translator.container import Container, container as default_container
from translator.errors import TranslationValidationError
from translator.language_detection import LanguageDetector, other_language

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FAILED = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate between English and Japanese with a local Ollama model",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON responses")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    translate = commands.add_parser("translate", help="Translate a piece of text")
    translate.add_argument("text", help="Text to translate, or '-' to read from stdin")
    translate.add_argument(
        "-s", "--source", help="Source language (en/ja); detected when omitted"
    )
    translate.add_argument(
        "-t", "--target", help="Target language (en/ja); the other language when omitted"
    )
    translate.add_argument("-m", "--model", help="Model to use if it exists on the server")

    commands.add_parser("status", help="Show the Ollama connection status")
    commands.add_parser("models", help="List models installed on the Ollama server")
    commands.add_parser("registered", help="List models registered for translation")

    add = commands.add_parser("add", help="Register a model for translation")
    add.add_argument("name", help="Model name as known to Ollama")
    add.add_argument("--default", action="store_true", help="Make it the default model")

    remove = commands.add_parser("remove", help="Unregister a model")
    remove.add_argument("name")

    default = commands.add_parser("default", help="Set the default model")
    default.add_argument("name")
    return parser


def resolve_languages(
    text: str,
    source: Optional[str],
    target: Optional[str],
    detector: LanguageDetector,
) -> Dict[str, str]:
    """Fill in missing languages: detect the source, pick the other language as target."""
    if source is None:
        source = detector.detect_language(text).code
    if target is None:
        try:
            target = other_language(source)
        except ValueError as exc:
            raise TranslationValidationError(str(exc)) from exc
    return {"sourceLanguage": source, "targetLanguage": target}


async def run_command(args: argparse.Namespace, container: Container) -> Dict[str, Any]:
    api = container.api
    if args.command == "translate":
        text = sys.stdin.read() if args.text == "-" else args.text
        payload: Dict[str, Any] = {"text": text}
        payload.update(resolve_languages(text, args.source, args.target, container.detector))
        if args.model:
            payload["modelName"] = args.model
        result = await api.translate(payload)
        await container.service.drain()
        return result
    if args.command == "status":
        return await api.get_connection_status()
    if args.command == "models":
        return await api.get_available_models()
    if args.command == "registered":
        return await api.get_models()
    if args.command == "add":
        return await api.add_model({"name": args.name, "makeDefault": args.default})
    if args.command == "remove":
        return await api.remove_model({"name": args.name})
    if args.command == "default":
        return await api.set_default_model({"name": args.name})
    raise ValueError(f"Unknown command: {args.command}")


def render(command: str, result: Dict[str, Any]) -> str:
    if command == "translate":
        return result["translatedText"]
    if command == "status":
        return result["status"]
    if command in ("models", "registered"):
        lines = []
        for model in result["models"]:
            marker = "*" if model.get("isDefault") else " "
            lines.append(f"{marker} {model['name']}")
        return "\n".join(lines) if lines else "(no models)"
    default = result.get("defaultModel") or "-"
    names = ", ".join(model["name"] for model in result.get("models", [])) or "-"
    return f"default: {default}\nmodels: {names}"


def main(argv: Optional[list] = None, container: Optional[Container] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    container = container or default_container
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else container.settings.log_level,
        format="[%(levelname)s] %(message)s",
    )

    try:
        result = asyncio.run(run_command(args, container))
    except TranslationValidationError as exc:
        print(f"[error] {exc.message}")
        return EXIT_INVALID
    except KeyboardInterrupt:
        print("[error] interrupted")
        return EXIT_INTERRUPTED

    if is_error(result):
        error = result["error"]
        print(f"[error] {error['code']}: {error['message']}")
        if error.get("details"):
            print(f"[error] {error['details']}")
        return EXIT_INVALID if error["code"] == TranslationValidationError.code else EXIT_FAILED

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    else:
        print(render(args.command, result))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
