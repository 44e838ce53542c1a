"""Command-line interface for the code review relay."""

import sys
from pathlib import Path
from typing import Optional

import click
from botocore.exceptions import BotoCoreError
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from agents.review_relay import ReviewRelay
from config.settings import Settings, load_settings
from tools.error_handling import InputValidationError, RelayError
from tools.input_validation import validate_review_request
from tools.observability import configure_logging

console = Console()

VERSION = "1.0.0"

# File suffixes mapped to language identifiers understood by the relay
SUFFIX_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".php": "php",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".sql": "sql",
    ".html": "html",
    ".css": "css",
    ".sh": "shell",
    ".bash": "bash",
}


def load_cli_settings() -> Settings:
    """Load settings, turning validation failures into a CLI error."""
    try:
        return load_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration:\n{e}")


def guess_language(path: Path) -> str:
    return SUFFIX_LANGUAGES.get(path.suffix.lower(), "other")


def create_relay(settings: Settings) -> ReviewRelay:
    """Create a relay backed by the configured Bedrock client."""
    from api.main import create_llm_client

    try:
        llm_client = create_llm_client(settings)
    except BotoCoreError as e:
        raise click.ClickException(f"Could not create the Bedrock client: {e}")

    return ReviewRelay(
        llm_client,
        max_tokens=settings.claude_max_tokens,
        temperature=settings.claude_temperature,
    )


@click.group()
@click.version_option(version=VERSION)
def main() -> None:
    """
    Code Review Relay CLI.

    Relays source code to Claude on AWS Bedrock and renders the review.

    \b
    Examples:
        # Start the HTTP API
        code-review-relay serve --port 5331

        # Review a local file
        code-review-relay review app.py

        # Show the effective configuration
        code-review-relay check-config
    """
    pass


@main.command()
@click.option("--host", default=None, help="Bind address (default: HOST setting)")
@click.option("--port", type=int, default=None, help="Port (default: PORT setting)")
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn
    import structlog

    settings = load_cli_settings()
    configure_logging(settings.log_level, settings.log_format)

    host = host or settings.host
    port = port or settings.port
    structlog.get_logger().info(
        "server_starting",
        host=host,
        port=port,
        environment=settings.environment.value,
        model=settings.claude_model,
    )

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--language",
    default=None,
    help="Language identifier (default: guessed from the file suffix)",
)
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Print the review as plain text instead of rendered markdown",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Write diagnostic log lines to stderr",
)
def review(file: Path, language: Optional[str], raw: bool, verbose: bool) -> None:
    """Review FILE with the configured model."""
    settings = load_cli_settings()
    # Log lines carry raw provider messages; keep them off stdout
    configure_logging("INFO" if verbose else "CRITICAL", "console", stream=sys.stderr)

    code = file.read_text(encoding="utf-8", errors="replace")
    try:
        validated = validate_review_request(
            code,
            language or guess_language(file),
            settings.max_code_length,
        )
    except InputValidationError as e:
        console.print(f"[red]✗[/red] {e.message}")
        sys.exit(1)

    relay = create_relay(settings)
    with console.status(f"Reviewing {file.name} ({validated.language})..."):
        try:
            result = relay.review(validated)
        except RelayError as e:
            console.print(f"[red]✗[/red] {e}")
            sys.exit(1)

    if raw:
        click.echo(result.content)
    else:
        console.print(Panel(Markdown(result.content), title=f"Review: {file.name}"))

    usage = Table(title="Token Usage", show_header=True)
    usage.add_column("Prompt", justify="right")
    usage.add_column("Completion", justify="right")
    usage.add_column("Total", justify="right")
    usage.add_row(
        str(result.usage.input_tokens),
        str(result.usage.output_tokens),
        str(result.usage.total_tokens),
    )
    console.print(usage)


@main.command("check-config")
def check_config() -> None:
    """Validate and print the effective configuration."""
    settings = load_cli_settings()

    table = Table(title="Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        if hasattr(value, "value"):
            value = value.value
        table.add_row(name, str(value))
    table.add_row("allowed_origins", ", ".join(settings.allowed_origins))
    table.add_row("rate_limit_enabled", str(settings.rate_limit_enabled))

    console.print(table)


if __name__ == "__main__":
    main()
