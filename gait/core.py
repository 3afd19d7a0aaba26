"""
Core Gait engine that orchestrates the commit workflow.
"""

from typing import Optional
from pathlib import Path
from loguru import logger
from rich.markup import escape

from .config.settings import Settings
from .git_ops.repository import GitRepository, GitRepositoryError
from .ai_backends.factory import BackendFactory
from .ai_backends.base import AIBackend, AIBackendError
from .ai_backends.ollama import OllamaBackend
from .utils.message_extractor import message_extractor
from .utils.prompts import PromptBuilder
from .ui.console import GaitConsole


class Gait:
    """Core Gait application engine."""

    def __init__(self, settings: Optional[Settings] = None, repo_path: Optional[Path] = None):
        """Initialize Gait with settings; the repository is opened lazily."""
        self.settings = settings or Settings()
        self.repo_path = repo_path
        self.console = GaitConsole(self.settings)
        self.prompt_builder = PromptBuilder()
        self.ai_backend: Optional[AIBackend] = None
        self._git_repo: Optional[GitRepository] = None

        logger.debug("Gait initialized")

    @property
    def git_repo(self) -> GitRepository:
        """The Git repository, validated on first use."""
        if self._git_repo is None:
            try:
                repo = GitRepository(self.repo_path)
                repo.check_git()
            except GitRepositoryError as e:
                raise GaitError(str(e))
            self._git_repo = repo
        return self._git_repo

    def initialize(self, model_spec: Optional[str] = None, provider: Optional[str] = None) -> AIBackend:
        """Select the AI backend from --model, an explicit provider or the configuration."""
        if provider:
            model = self.settings.provider_model(provider.lower())
        else:
            provider, model = self.settings.resolve_model(model_spec)
        try:
            self.ai_backend = BackendFactory.create_backend(self.settings, provider, model)
        except ValueError as e:
            raise GaitError(str(e))

        logger.info(f"Using {self.ai_backend.backend_type} backend with model {self.ai_backend.model}")
        return self.ai_backend

    def list_staged_files(self) -> None:
        """Print the staged files."""
        try:
            staged = self.git_repo.get_staged_files()
        except GitRepositoryError as e:
            raise GaitError(str(e))
        if not staged:
            self.console.print_warning("No staged changes.")
            return
        self.console.print_file_changes(staged, "Staged Changes")

    def pick_files_to_stage(self) -> None:
        """Interactive file picker: stage selected unstaged files."""
        try:
            changed = self.git_repo.get_all_changed_files()
        except GitRepositoryError as e:
            raise GaitError(str(e))
        staged = [change for change in changed if change.staged]
        unstaged = [change for change in changed if not change.staged]

        if staged:
            self.console.print_file_changes(staged, "Already Staged")

        if not unstaged:
            self.console.print_info("No unstaged files to pick from")
            return

        selected = self.console.select_files(unstaged)
        if not selected:
            self.console.print_info("No files selected")
            return

        try:
            self.git_repo.stage_files(selected)
        except GitRepositoryError as e:
            raise GaitError(str(e))
        self.console.print_success(f"Staged {len(selected)} file(s)")

    async def run_commit(
        self,
        dry_run: bool = False,
        model_spec: Optional[str] = None,
        interactive: bool = False
    ) -> Optional[str]:
        """
        Run the commit workflow.

        Returns the created commit hash, or None when nothing was committed
        (no staged changes, dry run or user abort).
        """
        logger.info(f"Running commit workflow (dry_run={dry_run})")

        if interactive:
            self.pick_files_to_stage()

        try:
            if not self.git_repo.has_staged_changes():
                self.console.print_warning("No staged changes. Nothing to commit.")
                return None

            # The diff is read exactly once, before the model call
            diff, total_lines = self.git_repo.get_diff(self.settings.git.max_diff_lines)
        except GitRepositoryError as e:
            raise GaitError(str(e))

        truncated_from = None
        if total_lines > self.settings.git.max_diff_lines:
            truncated_from = total_lines
            self.console.show_truncation_notice(total_lines, self.settings.git.max_diff_lines)

        prompt = self.prompt_builder.build_commit_prompt(diff, truncated_from)

        backend = self.ai_backend or self.initialize(model_spec)
        suggested = await self._generate_commit_message(backend, prompt)

        self.console.show_commit_message_preview(suggested)

        if dry_run:
            self.console.print("[bold cyan]🔍 Dry-run mode - no commit was made[/bold cyan]")
            self.console.print("[muted]Use without --dry-run or -n to actually commit.[/muted]")
            return None

        commit_message = self._review_commit_message(suggested)
        if commit_message is None:
            self.console.print_info("Commit aborted")
            return None

        try:
            commit_hash = self.git_repo.commit(commit_message)
        except GitRepositoryError as e:
            raise GaitError(f"Commit failed: {e}")

        subject = commit_message.split('\n', 1)[0]
        self.console.print_success(f"Committed {commit_hash[:8]} with message: {subject}")
        return commit_hash

    async def _generate_commit_message(self, backend: AIBackend, prompt: str) -> str:
        """Ask the backend for a message and normalize it."""
        try:
            with self.console.show_progress_spinner("Generating commit message"):
                response = await backend.generate(prompt)
        except AIBackendError as e:
            raise GaitError(str(e))

        commit_message = message_extractor.extract_commit_message(response.content)
        if not commit_message:
            raise GaitError("The model returned an empty commit message")

        self.console.print_success("Done")
        return commit_message

    def _review_commit_message(self, suggested: str) -> Optional[str]:
        """Accept, edit or abort; returns None on abort."""
        message = suggested
        while True:
            action = self.console.prompt_commit_action()

            if action == "accept":
                return message
            if action == "abort":
                return None

            if action == "edit":
                message = self.console.prompt_commit_message_edit(message)
            else:
                message = self.console.edit_in_editor(message)

            self.console.show_commit_message_preview(message, title="Edited Commit Message")

    async def test_ai_backend(self, provider: Optional[str] = None) -> bool:
        """Test AI backend connectivity and functionality."""
        backend = self.initialize(provider=provider)

        try:
            with self.console.show_progress_spinner(f"Testing {backend.backend_type} backend"):
                if not await backend.health_check():
                    self.console.print_error(f"{backend.backend_type} backend health check failed")
                    return False

                response = await backend.generate("Reply with: chore: test commit message")

            if response.content:
                self.console.print_success(f"{backend.backend_type} backend test successful")
                self.console.print_info(f"Test response: {response.content[:50]}")
                return True

            self.console.print_error("AI backend returned empty response")
            return False

        except AIBackendError as e:
            self.console.print_error(f"AI backend test failed: {e}")
            return False

    async def list_models(self, provider: Optional[str] = None) -> list[str]:
        """List models offered by a provider."""
        backend = self.initialize(provider=provider)

        with self.console.show_progress_spinner(f"Fetching {backend.backend_type} models"):
            return await backend.list_models()

    async def run_onboarding(self) -> bool:
        """
        First-run setup: create the config file, verify Ollama and pick a model.

        Returns False when a check failed.
        """
        self.console.print("\n[bold cyan]🚀 Welcome to Gait! Let's get you set up.[/bold cyan]\n")

        config_path = self.settings.config_file
        try:
            if not config_path.exists():
                config_path.parent.mkdir(parents=True, exist_ok=True)
                config_path.write_text("{}\n")
            self.console.print_success("Config file created")
        except OSError as e:
            logger.error(f"Could not create {config_path}: {e}")
            self.console.print_error("Failed to create config")
            return False

        ollama = OllamaBackend(
            api_url=self.settings.ai.ollama_url,
            model=self.settings.provider_model("ollama"),
            timeout=self.settings.ai.timeout
        )

        checks = [
            ("Checking Ollama installation", ollama.is_installed, "Ollama is installed", "Ollama not found"),
            ("Checking Ollama is running", ollama.health_check, "Ollama is running", "Ollama is not running"),
        ]

        all_passed = True
        for description, check, ok_message, error_message in checks:
            with self.console.show_progress_spinner(description):
                passed = await check()
            if passed:
                self.console.print_success(ok_message)
            else:
                self.console.print_error(error_message)
                all_passed = False

        if not all_passed:
            self.console.print_error("Please fix the issues above before continuing.")
            return False

        if "ollama" in self._configured_providers(config_path):
            self.console.print_success(f"Already configured with model: {self.settings.model_string}")
            return True

        self.console.print("\n[cyan]📋 Fetching available models...[/cyan]")
        models = await ollama.list_models()

        if not models:
            self.console.print_warning("No models found. Please install some models first:")
            self.console.print("[muted]   ollama pull llama3[/muted]\n")
            return False

        selected = self.console.select_model(models)
        if not selected:
            self.console.print_info("No model selected")
            return False

        self.settings.set_provider_model("ollama", selected)
        self.settings.active_provider = "ollama"
        self.settings.save_to_file(config_path)

        self.console.print_success("Configuration saved!")
        self.console.print(f"[muted]   Model: {escape(selected)}[/muted]")
        self.console.print(f"[muted]   Config: {config_path}[/muted]\n")
        return True

    def _configured_providers(self, config_path: Path) -> dict:
        """Providers explicitly present in the config file."""
        return Settings._read_config_file(config_path).get("providers") or {}

    def needs_onboarding(self) -> bool:
        """True when no provider has been configured on disk yet."""
        return not self._configured_providers(self.settings.config_file)

    def show_configuration(self) -> None:
        """Show current configuration."""
        self.console.print("[bold blue]Gait Configuration[/bold blue]")
        self.console.print()

        self.console.print("[bold]Providers:[/bold]")
        self.console.print(f"  Active: {self.settings.model_string}")
        for name, entry in self.settings.providers.items():
            self.console.print(f"  {name}: {escape(entry.model)}")
        self.console.print()

        self.console.print("[bold]AI Backend:[/bold]")
        self.console.print(f"  Ollama URL: {self.settings.ai.ollama_url}")
        self.console.print(f"  Timeout: {self.settings.ai.timeout}s")
        self.console.print(f"  Temperature: {self.settings.ai.temperature}")
        self.console.print()

        self.console.print("[bold]Git Settings:[/bold]")
        self.console.print(f"  Max diff lines: {self.settings.git.max_diff_lines}")
        self.console.print()

        self.console.print(f"[muted]Config file: {self.settings.config_file}[/muted]")


class GaitError(Exception):
    """Custom exception for Gait operations."""
    pass
