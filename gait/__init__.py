"""
Gait - Git commit with AI.

Drafts a conventional commit message for your staged changes using a local
Ollama model or a cloud provider, then lets you accept, edit or abort.
"""

__version__ = "1.0.0"

from gait.core import Gait, GaitError
from gait.config.settings import Settings

__all__ = ["Gait", "GaitError", "Settings"]
