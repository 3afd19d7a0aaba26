"""
CLI interface using Typer with Rich integration.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from loguru import logger

from .core import Gait, GaitError
from .config.settings import Settings, PROVIDER_DEFAULT_MODELS
from .ai_backends.factory import BackendFactory


app = typer.Typer(
    name="gait",
    help="Git commit with AI: draft conventional commit messages from your staged diff",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=False  # Allow default command
)

# Global console for error handling
console = Console()


def setup_logging(log_level: str = "WARNING", log_file: Optional[Path] = None):
    """Setup logging configuration."""
    logger.remove()  # Remove default handler

    # Console logging with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True
    )

    # File logging
    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"File logging disabled: {e}")
            return
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="1 MB",
            retention="7 days"
        )


def _load_settings(config_file: Optional[Path]) -> Settings:
    if config_file:
        if not config_file.expanduser().exists():
            console.print(f"[yellow]Config file not found:[/yellow] {config_file} (using defaults)")
        return Settings.from_file(config_file)
    return Settings()


def _config_option(ctx: typer.Context) -> Optional[Path]:
    """The -c/--config path given before the subcommand."""
    return (ctx.obj or {}).get("config")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    model: Optional[str] = typer.Option(
        None, "--model", "-m",
        help="Model to use, e.g. llama3 or openai/gpt-4o-mini"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n",
        help="Preview commit message without creating commit"
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d",
        help="Enable debug logging and show parsed flags"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable verbose logging"
    ),
    staged: bool = typer.Option(
        False, "--staged", "-s",
        help="List staged files and exit"
    ),
    interactive: bool = typer.Option(
        False, "--interactive", "-i",
        help="Pick unstaged files to stage before generating"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to configuration file"
    ),
    repo_path: Optional[Path] = typer.Option(
        None, "--repo", "-r",
        help="Git repository path (default: current directory)"
    ),
    version: bool = typer.Option(
        False, "--version",
        help="Show version information"
    )
):
    """
    Generate a commit message for the staged changes and commit.

    [bold blue]Examples:[/bold blue]

    [green]gait[/green]                              # Generate, review and commit
    [green]gait --dry-run[/green]                    # Preview without committing
    [green]gait -m openai/gpt-4o-mini[/green]        # Use a cloud provider
    [green]gait --interactive[/green]                # Pick files to stage first
    [green]gait --staged[/green]                     # List staged files
    [green]gait init[/green]                         # First-run setup
    [green]gait config --show[/green]                # Show configuration
    """
    ctx.obj = {"config": config_file}

    if version:
        from . import __version__
        console.print(f"[bold blue]Gait[/bold blue] version [green]{__version__}[/green]")
        return

    # If no subcommand was called, run the default commit workflow
    if ctx.invoked_subcommand is None:
        flags = {
            "model": model,
            "dry_run": dry_run,
            "debug": debug,
            "verbose": verbose,
            "staged": staged,
            "interactive": interactive,
            "config": config_file,
            "repo": repo_path,
        }
        asyncio.run(_run_commit(flags))


@app.command()
def init(ctx: typer.Context):
    """
    First-run setup: verify Ollama and choose a default model.
    """
    asyncio.run(_run_init(_config_option(ctx)))


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(
        False, "--show", "-s",
        help="Show current configuration"
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p",
        help=f"Set active provider ({', '.join(PROVIDER_DEFAULT_MODELS)})"
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m",
        help="Set model for the provider"
    ),
    save: bool = typer.Option(
        False, "--save",
        help="Save configuration to file"
    )
):
    """
    Manage Gait configuration.

    [bold blue]Examples:[/bold blue]

    [green]gait config --show[/green]                                  # Show current config
    [green]gait config --provider openai --model gpt-4o --save[/green] # Switch to OpenAI
    [green]gait config --model qwen2.5-coder:7b --save[/green]         # Change the Ollama model
    """
    _run_config(_config_option(ctx), show, provider, model, save)


@app.command()
def test(
    ctx: typer.Context,
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p",
        help="Test a specific provider"
    ),
    all_backends: bool = typer.Option(
        False, "--all", "-a",
        help="Test all providers"
    )
):
    """
    Test AI provider connectivity.
    """
    asyncio.run(_run_test(_config_option(ctx), provider, all_backends))


@app.command()
def models(
    ctx: typer.Context,
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p",
        help="Provider to list models for (default: active provider)"
    )
):
    """
    List models available from a provider.
    """
    asyncio.run(_run_models(_config_option(ctx), provider))


async def _run_commit(flags: dict):
    """Run commit command."""
    try:
        settings = _load_settings(flags["config"])

        # Setup logging - debug overrides verbose
        if flags["debug"]:
            log_level = "DEBUG"
        elif flags["verbose"]:
            log_level = "INFO"
        else:
            log_level = settings.ui.log_level
        setup_logging(log_level, settings.log_file)

        gait = Gait(settings, flags["repo"])

        if flags["debug"]:
            gait.console.show_debug_flags(flags)

        if flags["staged"]:
            gait.list_staged_files()
            return

        if gait.needs_onboarding() and not flags["model"]:
            gait.console.print_info(f"Using {settings.model_string}. Run `gait init` to choose a default model.")

        if flags["verbose"] or flags["debug"]:
            backend = gait.initialize(flags["model"])
            gait.console.show_ai_backend_info(backend.backend_type, backend.api_url, backend.model)

        await gait.run_commit(
            dry_run=flags["dry_run"],
            model_spec=flags["model"],
            interactive=flags["interactive"]
        )

    except GaitError as e:
        console.print(f"[red]✖ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(130)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Unexpected error occurred")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


async def _run_init(config_file: Optional[Path]):
    """Run init command."""
    try:
        setup_logging("WARNING")
        gait = Gait(_load_settings(config_file))
        if not await gait.run_onboarding():
            raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Setup cancelled by user[/yellow]")
        raise typer.Exit(130)


def _run_config(
    config_file: Optional[Path],
    show: bool,
    provider: Optional[str],
    model: Optional[str],
    save: bool
):
    """Run config command."""
    try:
        settings = _load_settings(config_file)

        # Show current configuration
        if show:
            Gait(settings).show_configuration()
            return

        # Update settings
        config_changed = False

        if provider:
            provider = provider.lower()
            if provider not in BackendFactory.list_supported_backends():
                console.print(f"[red]Invalid provider:[/red] {provider}")
                console.print(f"Valid options: {', '.join(BackendFactory.list_supported_backends())}")
                raise typer.Exit(1)
            settings.active_provider = provider
            config_changed = True
            console.print(f"[green]Set active provider to:[/green] {provider}")

        if model:
            target = provider or settings.active_provider
            settings.set_provider_model(target, model)
            config_changed = True
            console.print(f"[green]Set {target} model to:[/green] {model}")
        elif provider and provider not in settings.providers:
            settings.set_provider_model(provider, settings.provider_model(provider))

        # Save if requested
        if save and config_changed:
            config_path = settings.save_to_file()
            console.print(f"[green]Configuration saved to:[/green] {config_path}")
        elif config_changed:
            console.print("[yellow]Use --save to persist these changes[/yellow]")

        if not config_changed:
            console.print("[yellow]No configuration changes made[/yellow]")
            console.print("Use [green]--show[/green] to see current configuration")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


async def _run_test(config_file: Optional[Path], provider: Optional[str], all_backends: bool):
    """Run test command."""
    try:
        settings = _load_settings(config_file)

        if all_backends:
            console.print("[bold blue]Testing all AI providers...[/bold blue]")
            results = await BackendFactory.test_all_backends(settings)

            for backend_type, status in results.items():
                status_text = "[green]✓ Available[/green]" if status else "[red]✗ Unavailable[/red]"
                console.print(f"  {backend_type.title()}: {status_text}")
            return

        if provider and provider.lower() not in BackendFactory.list_supported_backends():
            console.print(f"[red]Unsupported provider:[/red] {provider}")
            console.print(f"Supported: {', '.join(BackendFactory.list_supported_backends())}")
            raise typer.Exit(1)

        gait = Gait(settings)
        if not await gait.test_ai_backend(provider):
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Test failed:[/red] {e}")
        raise typer.Exit(1)


async def _run_models(config_file: Optional[Path], provider: Optional[str]):
    """Run models command."""
    try:
        gait = Gait(_load_settings(config_file))
        available = await gait.list_models(provider)
    except GaitError as e:
        console.print(f"[red]✖ {e}[/red]")
        raise typer.Exit(1)

    if not available:
        console.print("[yellow]No models found[/yellow]")
        raise typer.Exit(1)

    for name in available:
        console.print(f"  [cyan]{name}[/cyan]")


def main():
    """Main entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
