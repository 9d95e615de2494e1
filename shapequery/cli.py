# shapequery/cli.py
from __future__ import annotations
import asyncio
import logging
from typing import Optional

import httpx
import typer
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax

from . import __version__
from .config import ConfigError, get_config
from .llm import (
    MessageAPI, MessageError, Message, MessageResponse, TextContent, derive_schema,
)
from .shapes import DEMO_PROMPTS, DEMO_SHAPES

app = typer.Typer(add_completion=False, rich_markup_mode="rich",
                  help="shapequery - typed structured extraction from Claude", no_args_is_help=True)
console = Console()


def _build_client() -> MessageAPI:
    return MessageAPI.from_config(get_config())


def _resolve_shape(name: str) -> type[BaseModel]:
    if name not in DEMO_SHAPES:
        choices = ", ".join(DEMO_SHAPES)
        raise typer.BadParameter(f"Unknown shape '{name}'. Choose one of: {choices}")
    return DEMO_SHAPES[name]


def _print_value(value: BaseModel) -> None:
    console.print(Syntax(value.model_dump_json(indent=2), "json", theme="github-dark"))


def _print_response(response: MessageResponse) -> None:
    for item in response.content:
        if isinstance(item, TextContent):
            console.print(item.text, markup=False)
        else:
            console.print(f"[yellow]Non-text content:[/yellow] type={item.type!r} name={item.name!r}")
    console.print(
        f"[dim]{response.model} · stop: {response.stop_reason} · "
        f"tokens in/out: {response.usage.input_tokens}/{response.usage.output_tokens}[/dim]"
    )


def _run(coro) -> None:
    """Run a coroutine, reporting client errors instead of a traceback."""
    try:
        asyncio.run(coro)
    except (MessageError, ConfigError, httpx.HTTPError) as e:
        console.print(f"[red]Error ({type(e).__name__}):[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    shapequery - ask Claude for JSON matching a schema and get typed values back.

    The API key is read from the ANTHROPIC_KEY environment variable.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@app.command()
def create(
    text: str = typer.Argument(..., help="Message to send"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model to use"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Completion token limit"),
    temperature: Optional[float] = typer.Option(None, "--temperature", "-t", help="Sampling temperature"),
) -> None:
    """Send a single user message and print the reply."""

    async def _create():
        async with _build_client() as api:
            kwargs = {"model": model, "max_tokens": max_tokens}
            if temperature is not None:
                kwargs["temperature"] = temperature
            response = await api.create([Message(text)], **kwargs)
        _print_response(response)

    _run(_create())


@app.command()
def ask(
    shape: str = typer.Argument(..., help=f"Target shape: {', '.join(DEMO_SHAPES)}"),
    prompt: str = typer.Argument(..., help="What to ask for"),
) -> None:
    """Ask for data matching one of the demo shapes."""
    target = _resolve_shape(shape)

    async def _ask():
        async with _build_client() as api:
            value = await api.ask(target, prompt)
        _print_value(value)

    _run(_ask())


@app.command()
def schema(
    shape: str = typer.Argument(..., help=f"Target shape: {', '.join(DEMO_SHAPES)}"),
) -> None:
    """Print the schema text sent for a demo shape."""
    target = _resolve_shape(shape)
    try:
        console.print(derive_schema(target), markup=False, highlight=False)
    except MessageError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.command()
def demo() -> None:
    """Run the demo questions in a single client session."""

    async def _demo():
        async with _build_client() as api:
            for target, prompt in DEMO_PROMPTS:
                console.print(f"\n[bold cyan]{target.__name__}[/bold cyan] [dim]{prompt}[/dim]")
                _print_value(await api.ask(target, prompt))

    _run(_demo())


@app.command()
def version() -> None:
    """Show shapequery version information."""
    console.print(f"shapequery v{__version__}", style="bold cyan")


if __name__ == "__main__":
    app()
