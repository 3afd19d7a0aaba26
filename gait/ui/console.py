"""
Console interface with Rich components.
"""

import json
from typing import List, Optional, Dict, Any
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.theme import Theme
from rich import box
import click

from ..git_ops.repository import FileChange
from ..config.settings import Settings


class GaitConsole:
    """Console interface for Gait."""

    def __init__(self, settings: Settings):
        """Initialize console with settings."""
        self.settings = settings
        self._setup_styles()
        self.console = Console(
            color_system="auto" if settings.ui.use_colors else None,
            theme=self.theme
        )

    def _setup_styles(self) -> None:
        """Setup custom styles for consistent theming."""
        self.styles = {
            "title": "bold blue",
            "success": "bold green",
            "warning": "bold yellow",
            "error": "bold red",
            "info": "blue",
            "muted": "dim",
            "file_added": "green",
            "file_modified": "yellow",
            "file_deleted": "red",
            "file_untracked": "magenta",
            "commit_hash": "dim cyan",
            "commit_type": "bold magenta",
        }

        self.theme = Theme(self.styles)

    def print(self, *args, **kwargs) -> None:
        """Print through the themed console."""
        self.console.print(*args, **kwargs)

    def show_debug_flags(self, flags: Dict[str, Any]) -> None:
        """Dump parsed CLI flags in debug mode."""
        self.console.print("\n[muted]🔧 Debug mode - CLI flags:[/muted]")
        self.console.print_json(json.dumps(flags, default=str))
        self.console.print()

    def print_file_changes(self, changes: List[FileChange], title: str = "File Changes", numbered: bool = False) -> None:
        """Print file changes in a table."""
        if not changes:
            return

        table = Table(title=title, box=box.SIMPLE_HEAD)
        if numbered:
            table.add_column("#", style="bold cyan", width=4)
        table.add_column("Status", style="bold", width=10)
        table.add_column("File", style="bold")
        table.add_column("Index", style="muted")

        for i, change in enumerate(changes, 1):
            status_style = {
                'M': "file_modified",
                'A': "file_added",
                'D': "file_deleted",
                'R': "yellow",
                'C': "blue",
                '?': "file_untracked",
            }.get(change.change_type, "default")

            row = [
                f"[{status_style}]{change.description}[/{status_style}]",
                escape(change.file_path),
                "staged" if change.staged else "unstaged",
            ]
            if numbered:
                row.insert(0, str(i))
            table.add_row(*row)

        self.console.print(table)
        self.console.print()

    def show_truncation_notice(self, original_lines: int, truncated_lines: int) -> None:
        """Show notice when a large diff is truncated for AI analysis."""
        notice = Panel(
            f"[bold yellow]Large diff detected[/bold yellow]\n"
            f"[dim]Showing {truncated_lines:,} of {original_lines:,} lines for AI analysis[/dim]",
            title="📝 Diff Truncation Notice",
            border_style="yellow",
            box=box.ROUNDED
        )
        self.console.print(notice)
        self.console.print()

    def show_ai_backend_info(self, backend_type: str, api_url: str, model: str) -> None:
        """Show AI backend information."""
        backend_panel = Panel(
            f"[bold]{backend_type.title()}[/bold] @ {api_url}\n"
            f"Model: [cyan]{escape(model)}[/cyan]",
            title="AI Backend",
            box=box.ROUNDED,
            style="blue"
        )
        self.console.print(backend_panel)
        self.console.print()

    def show_commit_message_preview(self, message: str, title: str = "Suggested Commit Message") -> None:
        """Show commit message preview."""
        subject, _, body = message.partition('\n')

        # Highlight conventional commit prefix
        if ':' in subject:
            prefix, description = subject.split(':', 1)
            formatted = f"[commit_type]{escape(prefix.strip())}[/commit_type]: {escape(description.strip())}"
        else:
            formatted = escape(subject)

        if body:
            formatted += "\n" + escape(body)

        message_panel = Panel(
            formatted,
            title=title,
            box=box.ROUNDED,
            style="green"
        )
        self.console.print(message_panel)
        self.console.print()

    def prompt_commit_action(self) -> str:
        """Ask whether to accept, edit or abort the suggested message."""
        self.console.print(
            "[bold yellow]Options:[/bold yellow] "
            "[green]a[/green]ccept, "
            "[cyan]e[/cyan]dit subject, "
            "[cyan]v[/cyan] edit in $EDITOR, "
            "[red]q[/red] abort"
        )
        choice = Prompt.ask(
            "Your choice",
            choices=["a", "e", "v", "q"],
            default="a",
            show_choices=False,
            console=self.console
        )
        return {"a": "accept", "e": "edit", "v": "editor", "q": "abort"}[choice]

    def prompt_commit_message_edit(self, current_message: str) -> str:
        """
        Let the user edit the subject line, pre-filled with the suggestion.

        An empty answer keeps the suggestion. The body is preserved.
        """
        subject, sep, body = current_message.partition('\n')
        self.console.print("[muted]Edit the subject (leave empty to accept)[/muted]")

        try:
            new_subject = self._read_subject(subject)
        except EOFError:
            # Ctrl-D keeps the suggestion
            self.console.print()
            return current_message

        new_subject = new_subject.strip()
        if not new_subject:
            return current_message
        return f"{new_subject}{sep}{body}"

    def _read_subject(self, subject: str) -> str:
        """Read a subject line, pre-filled through readline where the platform has it."""
        try:
            import readline
        except ImportError:
            return Prompt.ask(
                "[bold]Commit subject[/bold]",
                default=subject,
                console=self.console
            )

        def hook():
            readline.insert_text(subject)
            readline.redisplay()

        readline.set_pre_input_hook(hook)
        try:
            return input("Commit subject: ")
        finally:
            readline.set_pre_input_hook()

    def edit_in_editor(self, current_message: str) -> str:
        """Open the full message in $EDITOR; an empty or unchanged result keeps it."""
        edited = click.edit(current_message + "\n", extension=".gitcommit")
        if edited is None:
            return current_message

        lines = [line for line in edited.split('\n') if not line.startswith('#')]
        edited = '\n'.join(lines).strip()
        return edited or current_message

    def select_files(self, files: List[FileChange]) -> List[str]:
        """Let the user pick files by number (comma separated, or 'a' for all)."""
        self.print_file_changes(files, "Unstaged Changes", numbered=True)

        while True:
            answer = Prompt.ask(
                "Files to stage ([cyan]1,3[/cyan], [cyan]2-4[/cyan], [green]a[/green]ll, empty for none)",
                default="",
                show_default=False,
                console=self.console
            ).strip().lower()

            if not answer:
                return []
            if answer in ("a", "all"):
                return [f.file_path for f in files]

            indexes = self._parse_selection(answer, len(files))
            if indexes is None:
                self.console.print("[red]Invalid selection. Please try again.[/red]")
                continue
            return [files[i].file_path for i in indexes]

    @staticmethod
    def _parse_selection(answer: str, count: int) -> Optional[List[int]]:
        """Parse "1,3,5-7" into zero-based indexes; None when invalid."""
        indexes: List[int] = []
        for part in answer.replace(' ', '').split(','):
            if not part:
                continue
            start, dash, end = part.partition('-')
            if not start.isdigit() or (dash and not end.isdigit()):
                return None
            first, last = int(start), int(end) if dash else int(start)
            if not (1 <= first <= last <= count):
                return None
            for i in range(first - 1, last):
                if i not in indexes:
                    indexes.append(i)
        return indexes

    def select_model(self, models: List[str]) -> Optional[str]:
        """Select a model from a numbered list."""
        if not models:
            return None

        self.console.print("\n[bold blue]Select your preferred model:[/bold blue]")
        for i, model in enumerate(models):
            self.console.print(f"  [{i}] [cyan]{escape(model)}[/cyan]")

        try:
            choice = IntPrompt.ask(
                "Model",
                default=0,
                choices=[str(i) for i in range(len(models))],
                console=self.console
            )
            return models[choice]
        except (KeyboardInterrupt, EOFError):
            return None

    def show_progress_spinner(self, description: str):
        """Create a progress spinner context manager."""
        return self.console.status(f"[blue]{description}...[/blue]", spinner="dots")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self.console.print(f"[success]✓ {escape(message)}[/success]")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self.console.print(f"[warning]⚠ {escape(message)}[/warning]")

    def print_error(self, message: str) -> None:
        """Print error message."""
        self.console.print(f"[error]✗ {escape(message)}[/error]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self.console.print(f"[info]ℹ {escape(message)}[/info]")
