"""Character portrait generation."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Protocol
from uuid import uuid4

from sharad.core.config import AIProviderSettings, get_settings
from sharad.core.exceptions import ImageGenerationError
from sharad.core.logging import get_logger
from sharad.dm.prompts import build_portrait_prompt


logger = get_logger(__name__)


class ImageService(Protocol):
    """Turns a description into an image file."""

    async def generate_image(self, prompt: str) -> Path: ...


class OpenAIImageService:
    """Image service on the OpenAI Images API.

    Portraits are written as PNG files under ``output_dir``.
    """

    def __init__(
        self,
        *,
        output_dir: Path | None = None,
        settings: AIProviderSettings | None = None,
        client: Any = None,
    ) -> None:
        if settings is None or output_dir is None:
            app_settings = get_settings()
            settings = settings or app_settings.ai
            output_dir = output_dir or app_settings.storage.image_path
        self._settings = settings
        self._output_dir = output_dir
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            key = self._settings.openai_api_key
            if key is None:
                raise ImageGenerationError(
                    "OpenAI API key not configured",
                    details={"env_var": "SHARAD_OPENAI_API_KEY"},
                )
            self._client = AsyncOpenAI(
                api_key=key.get_secret_value(),
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def generate_image(self, prompt: str) -> Path:
        """Generate a portrait and save it.

        Args:
            prompt: Description of the character.

        Returns:
            Path of the saved PNG.

        Raises:
            ImageGenerationError: If generation or saving fails.
        """
        from openai import OpenAIError

        client = self._get_client()
        logger.debug("Generating portrait", prompt=prompt)

        try:
            response = await client.images.generate(
                model=self._settings.image_model,
                prompt=build_portrait_prompt(prompt),
                size=self._settings.image_size,
                n=1,
                response_format="b64_json",
            )
        except OpenAIError as exc:
            raise ImageGenerationError(
                f"Image generation failed: {exc}",
                model=self._settings.image_model,
                provider="openai",
            ) from exc

        if not response.data or not response.data[0].b64_json:
            raise ImageGenerationError("No image data received", model=self._settings.image_model)

        path = self._output_dir / f"portrait-{uuid4().hex}.png"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(base64.b64decode(response.data[0].b64_json))
        except OSError as exc:
            raise ImageGenerationError(
                f"Failed to save portrait: {exc}",
                details={"path": str(path)},
            ) from exc

        logger.info("Portrait saved", path=str(path))
        return path


__all__ = [
    "ImageService",
    "OpenAIImageService",
]
