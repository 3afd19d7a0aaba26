"""
Ollama AI backend implementation.
"""

import asyncio
import aiohttp
from loguru import logger

from .base import AIBackend, AIBackendError, AIResponse


class OllamaBackend(AIBackend):
    """Ollama AI backend: HTTP API first, `ollama run` as the single fallback."""

    async def call_api(self, prompt: str) -> AIResponse:
        """Call the Ollama API, falling back to the CLI once."""
        try:
            return await self._call_http(prompt)
        except (aiohttp.ClientError, asyncio.TimeoutError, AIBackendError, ValueError) as e:
            logger.warning(f"Ollama HTTP API failed ({e}), falling back to the ollama CLI")

        return await self._call_cli(prompt)

    async def _call_http(self, prompt: str) -> AIResponse:
        """POST the prompt to /api/generate."""
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
            }
        }

        data = await self._post_json(f"{self.api_url}/api/generate", payload)

        return AIResponse(
            content=(data.get("response") or "").strip(),
            model=self.model,
            backend_type=self.backend_type,
            raw_response=data
        )

    async def _call_cli(self, prompt: str) -> AIResponse:
        """Run `ollama run <model>` with the prompt on stdin."""
        logger.debug(f"Running: ollama run {self.model}")

        try:
            process = await asyncio.create_subprocess_exec(
                "ollama", "run", self.model,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            logger.error(f"Could not start ollama CLI: {e}")
            raise AIBackendError("Failed to communicate with Ollama") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(f"{prompt}\n".encode()),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            logger.error(f"ollama CLI timeout after {self.timeout}s")
            raise AIBackendError("Failed to communicate with Ollama") from e

        output = stdout.decode(errors="replace").strip()
        if process.returncode != 0 and not output:
            logger.error(f"ollama CLI exited with {process.returncode}: {stderr.decode(errors='replace').strip()}")
            raise AIBackendError("Failed to communicate with Ollama")

        return AIResponse(
            content=output,
            model=self.model,
            backend_type=self.backend_type
        )

    async def health_check(self) -> bool:
        """Check if Ollama is healthy."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    f"{self.api_url}/api/tags",
                    timeout=aiohttp.ClientTimeout(total=5)
                ) as response:
                    return response.status == 200
        except Exception as e:
            logger.debug(f"Ollama health check failed: {e}")
            return False

    async def list_models(self) -> list[str]:
        """List available Ollama models."""
        try:
            data = await self._get_json(f"{self.api_url}/api/tags")
            models = [model.get("name", "") for model in data.get("models", [])]
            return [m for m in models if m]
        except Exception as e:
            logger.debug(f"Listing models over HTTP failed: {e}")

        return await self._list_models_cli()

    async def _list_models_cli(self) -> list[str]:
        """Parse the first column of `ollama list`."""
        try:
            process = await asyncio.create_subprocess_exec(
                "ollama", "list",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to list Ollama models: {e}")
            return []

        return self.parse_model_list(stdout.decode(errors="replace"))

    @staticmethod
    def parse_model_list(output: str) -> list[str]:
        """Extract model names from `ollama list` output (header skipped)."""
        models = []
        for line in output.split('\n')[1:]:
            line = line.strip()
            if not line:
                continue
            name = line.split()[0]
            if name and '=' not in name:
                models.append(name)
        return models

    async def is_installed(self) -> bool:
        """Check that the ollama CLI can be executed."""
        try:
            process = await asyncio.create_subprocess_exec(
                "ollama", "--version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
            await asyncio.wait_for(process.communicate(), timeout=10)
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"ollama --version failed: {e}")
            return False
        return process.returncode == 0
