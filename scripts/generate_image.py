from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from replicate_imagegen.api import configure_logging
from replicate_imagegen.config import load_config
from replicate_imagegen.errors import GenerationError
from replicate_imagegen.tasks.orchestrator import GenerationOrchestrator
from replicate_imagegen.tasks.request_plan import SUPPORTED_ASPECT_RATIOS, SUPPORTED_FORMATS
from replicate_imagegen.types import UserContext


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate an image from a text prompt on a Replicate-hosted model."
    )
    parser.add_argument("prompt", type=str, help="Text prompt describing the image.")
    parser.add_argument("--model", type=str, default=None, help="Model identifier (owner/name[:version]).")
    parser.add_argument(
        "--aspect-ratio",
        choices=SUPPORTED_ASPECT_RATIOS,
        default="1:1",
        help="Preset aspect ratio, or 'custom' together with --width/--height.",
    )
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--format", choices=SUPPORTED_FORMATS, default="png")
    parser.add_argument(
        "--fallback",
        action="append",
        default=None,
        help="Fallback model tried when the requested one is rejected (repeatable).",
    )
    parser.add_argument(
        "--dotenv",
        type=Path,
        default=None,
        help="Optional path to a .env file containing provider credentials.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


async def run(args: argparse.Namespace, console: Console) -> int:
    config = load_config(args.dotenv)
    orchestrator = GenerationOrchestrator(config)
    payload = {
        "prompt": args.prompt,
        "aspect_ratio": args.aspect_ratio,
        "width": args.width,
        "height": args.height,
        "format": args.format,
    }
    if args.model:
        payload["model"] = args.model

    try:
        response = await orchestrator.generate_with_fallback(
            payload, UserContext(user_id="cli"), fallback_models=args.fallback
        )
    except GenerationError as exc:
        console.print(f"[red]{exc.message}[/red] ({exc.http_status})")
        if exc.detail:
            console.print(f"[dim]{exc.detail}[/dim]")
        return 1

    table = Table(title=f"{response.model} ({response.output_format})")
    table.add_column("#", justify="right")
    table.add_column("Locator", overflow="fold")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    for index, resource in enumerate(response.resources):
        status = "[green]embedded[/green]" if resource.ok else f"[red]{resource.failure_reason}[/red]"
        size = str(resource.size_bytes) if resource.size_bytes is not None else "-"
        table.add_row(str(index), resource.locator[:120], size, status)
    console.print(table)

    if response.degraded:
        console.print("[yellow]Provider returned no image URLs; placeholder image substituted.[/yellow]")
    return 0


def main() -> None:
    args = parse_args()
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    console = Console()
    raise SystemExit(asyncio.run(run(args, console)))


if __name__ == "__main__":
    main()
