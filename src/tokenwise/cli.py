"""Command-line interface for Tokenwise."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tokenwise import __version__
from tokenwise.config import TokenEngineSettings, get_settings
from tokenwise.core.errors import TokenEngineError
from tokenwise.core.usage.reporter import TokenUsage
from tokenwise.engine import TokenEngine


def configure_logging(settings: TokenEngineSettings) -> None:
    """Send log records to stderr, and to the log file when one is configured."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="tokenwise",
        description="Token budgeting, model routing and cost estimation for LLM requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tokenwise budget                           # Budget for the configured context window
  tokenwise budget --context 128000          # Budget for a 128k window
  tokenwise estimate "Hello, world"          # Heuristic token estimate
  tokenwise estimate --file prompt.txt --model gpt-4o
  tokenwise route "Refactor this module" --tools --turns 12
  tokenwise cost --model claude-sonnet-4 --input 12000 --output 800

Environment Variables:
  TOKENWISE_CONTEXT_WINDOW          # Nominal context window (default: 200000)
  TOKENWISE_SAFETY_MARGIN_PERCENT   # Safety margin fraction (default: 0.05)
  TOKENWISE_PREFERRED_PROVIDER      # anthropic (default), openai or ollama
  TOKENWISE_COMPACTION_STRATEGY     # tiered (default) or always-llm
  TOKENWISE_LOG_LEVEL               # DEBUG, INFO, WARNING (default: INFO)
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    budget = subparsers.add_parser("budget", help="Show the token budget for a context window")
    budget.add_argument(
        "--context",
        type=int,
        default=None,
        metavar="TOKENS",
        help="Nominal context window (overrides TOKENWISE_CONTEXT_WINDOW)",
    )
    budget.add_argument(
        "--history",
        type=int,
        default=None,
        metavar="TOKENS",
        help="Current history size; reports whether it fits and how much to free",
    )

    estimate = subparsers.add_parser("estimate", help="Estimate tokens for a piece of text")
    estimate.add_argument("text", nargs="?", default=None, help="Text to estimate")
    estimate.add_argument("--file", type=Path, default=None, help="Read text from a file")
    estimate.add_argument(
        "--model",
        type=str,
        default=None,
        help="Count precisely with this model's tokenizer instead of estimating",
    )

    route = subparsers.add_parser("route", help="Pick a model for a request")
    route.add_argument("text", help="Request text")
    route.add_argument("--tools", action="store_true", help="Tools are offered for this turn")
    route.add_argument("--turns", type=int, default=0, help="Turns so far in the conversation")
    route.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Provider model table to use (overrides TOKENWISE_PREFERRED_PROVIDER)",
    )

    cost = subparsers.add_parser("cost", help="Estimate the USD cost of a call")
    cost.add_argument("--model", type=str, required=True, help="Model ID")
    cost.add_argument("--input", type=int, required=True, help="Input tokens")
    cost.add_argument("--output", type=int, required=True, help="Output tokens")
    cost.add_argument("--cache-read", type=int, default=None, help="Cache read tokens")
    cost.add_argument("--cache-write", type=int, default=None, help="Cache write tokens")

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _run_budget(engine: TokenEngine, args: argparse.Namespace) -> int:
    context = args.context or engine.settings.context_window
    validation = engine.validate_context_window(context)
    if not validation.valid:
        print(f"❌ {validation.warning}", file=sys.stderr)
        return 1

    budget = engine.calculate_budget(context)
    output: dict[str, Any] = {"context_window": context, "budget": budget.to_dict()}
    if validation.warning:
        output["warning"] = validation.warning
    if args.history is not None:
        output["history_tokens"] = args.history
        output["fits"] = engine.history_fits_budget(args.history, budget)
        output["tokens_to_free"] = engine.tokens_to_free(args.history, budget)
    _print_json(output)
    return 0


def _run_estimate(engine: TokenEngine, args: argparse.Namespace) -> int:
    if args.file is not None:
        text = args.file.read_text(encoding="utf-8")
    elif args.text is not None:
        text = args.text
    else:
        print("❌ Provide text or --file", file=sys.stderr)
        return 1

    tokens = engine.count_tokens(text, args.model)
    method = f"tiktoken ({args.model})" if args.model else "heuristic"
    _print_json({"tokens": tokens, "characters": len(text), "method": method})
    return 0


def _run_route(engine: TokenEngine, args: argparse.Namespace) -> int:
    decision = engine.route_to_model(args.text, args.tools, args.turns, args.provider)
    _print_json(decision.to_dict())
    return 0


def _run_cost(engine: TokenEngine, args: argparse.Namespace) -> int:
    usage = TokenUsage(
        input_tokens=args.input,
        output_tokens=args.output,
        cache_creation_tokens=args.cache_write,
        cache_read_tokens=args.cache_read,
    )
    _print_json({"model": args.model, "cost_usd": engine.calculate_cost(usage, args.model)})
    return 0


COMMANDS = {
    "budget": _run_budget,
    "estimate": _run_estimate,
    "route": _run_route,
    "cost": _run_cost,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except (ValidationError, ValueError) as e:
        print(f"❌ Configuration Error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings)

    try:
        engine = TokenEngine(settings)
        return COMMANDS[args.command](engine, args)
    except (TokenEngineError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
