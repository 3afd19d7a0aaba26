"""
Git repository operations over the git binary with error handling.
"""

from pathlib import Path
from typing import List, Optional, Tuple
from dataclasses import dataclass
from git import Repo, InvalidGitRepositoryError, NoSuchPathError, GitCommandError
from loguru import logger


@dataclass
class FileChange:
    """Represents a single file change."""

    file_path: str
    change_type: str  # 'M', 'A', 'D', 'R', 'C', '?' (untracked)
    staged: bool = False

    @property
    def is_untracked(self) -> bool:
        return self.change_type == '?'

    @property
    def description(self) -> str:
        return {
            'M': "Modified",
            'A': "Added",
            'D': "Deleted",
            'R': "Renamed",
            'C': "Copied",
            'T': "Type changed",
            'U': "Unmerged",
            '?': "Untracked",
        }.get(self.change_type, self.change_type)


class GitRepository:
    """Thin wrapper over the git commands the commit workflow needs."""

    def __init__(self, repo_path: Optional[Path] = None):
        """Initialize Git repository."""
        self.repo_path = repo_path or Path.cwd()
        self.repo: Optional[Repo] = None
        self._initialize_repo()

    def _initialize_repo(self) -> None:
        """Initialize the Git repository object."""
        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
            logger.debug(f"Initialized Git repository at {self.repo.working_dir}")
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise GitRepositoryError(f"Not a Git repository: {self.repo_path}")

    def _git(self, *args: str) -> str:
        """Run a git subcommand and return its trimmed output."""
        command, *rest = args
        try:
            output = getattr(self.repo.git, command.replace('-', '_'))(*rest)
        except GitCommandError as e:
            raise GitRepositoryError(f"git {' '.join(args)} failed: {e.stderr.strip() or e}")
        return output.strip()

    def check_git(self) -> str:
        """Validate that git works and we are inside a work tree."""
        version = self._git('version')
        inside = self._git('rev-parse', '--is-inside-work-tree')
        if inside != 'true':
            raise GitRepositoryError(f"Not inside a Git work tree: {self.repo_path}")
        logger.debug(f"Using {version}")
        return version

    def has_staged_changes(self) -> bool:
        """Return True when the index differs from HEAD."""
        status, _, stderr = self.repo.git.diff(
            '--cached', '--quiet',
            with_extended_output=True,
            with_exceptions=False
        )
        # --quiet exits 1 for "differences", anything above that is a real failure
        if status not in (0, 1):
            raise GitRepositoryError(f"git diff --cached --quiet failed: {stderr.strip()}")
        return status == 1

    def get_diff(self, max_lines: Optional[int] = None) -> Tuple[str, int]:
        """
        Get the staged diff.

        Returns the (possibly truncated) diff text and the original line count.
        """
        diff = self._git('diff', '--cached')
        lines = diff.split('\n')
        total_lines = len(lines)

        if max_lines and total_lines > max_lines:
            lines = lines[:max_lines] + [f"... (truncated, {total_lines - max_lines} more lines)"]
            diff = '\n'.join(lines)
            logger.debug(f"Truncated staged diff from {total_lines} to {max_lines} lines")

        return diff, total_lines

    def _parse_name_status(self, output: str, staged: bool) -> List[FileChange]:
        """Parse NUL separated `git diff --name-status -z` output."""
        changes = []
        fields = [field for field in output.split('\0') if field]
        i = 0
        while i < len(fields):
            status = fields[i].strip()
            # Renames and copies carry a similarity score and both paths
            path_count = 2 if status[:1] in ('R', 'C') else 1
            paths = fields[i + 1:i + 1 + path_count]
            i += 1 + path_count
            if not status or not paths:
                continue
            changes.append(FileChange(
                file_path=paths[-1],
                change_type=status[0],
                staged=staged
            ))
        return changes

    def get_staged_files(self) -> List[FileChange]:
        """Get staged file changes."""
        return self._parse_name_status(self._git('diff', '--cached', '--name-status', '-z'), staged=True)

    def get_unstaged_files(self) -> List[FileChange]:
        """Get unstaged changes to tracked files plus untracked files."""
        changes = self._parse_name_status(self._git('diff', '--name-status', '-z'), staged=False)

        known = {change.file_path for change in changes}
        for file_path in self.repo.untracked_files:
            if file_path not in known:
                changes.append(FileChange(file_path=file_path, change_type='?', staged=False))

        return changes

    def get_all_changed_files(self) -> List[FileChange]:
        """Get all changed files, staged first, without duplicates."""
        files = self.get_staged_files()
        staged_paths = {change.file_path for change in files}

        for change in self.get_unstaged_files():
            if change.file_path not in staged_paths:
                files.append(change)

        return files

    def stage_files(self, file_paths: List[str]) -> None:
        """Stage files for commit."""
        if not file_paths:
            return
        # git add handles modified, new and deleted paths alike
        self._git('add', '--', *file_paths)
        logger.info(f"Staged {len(file_paths)} files")

    def commit(self, message: str) -> str:
        """Create a commit; the first line is the subject, the rest the body."""
        subject, _, body = message.strip().partition('\n')
        body = body.strip()

        args = ['-m', subject.strip()]
        if body:
            args += ['-m', body]

        self._git('commit', *args)
        commit_hash = self.repo.head.commit.hexsha

        logger.info(f"Created commit {commit_hash[:8]}: {subject}")
        return commit_hash


class GitRepositoryError(Exception):
    """Custom exception for Git repository operations."""
    pass
