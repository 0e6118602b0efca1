"""Image generation from a text prompt.

The image service is an external collaborator: it takes one prompt and an
image size and the images it returns are saved as local files.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

import httpx
import openai

from voicesketch.config.config_loader import config
from voicesketch.utils.exceptions import ImageGenerationError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


class ImageSize(Enum):
    """Image sizes the service accepts."""

    S256 = "256x256"
    S512 = "512x512"
    S1024 = "1024x1024"


class ImageGenerator(ABC):
    """Contract for an image service."""

    @abstractmethod
    def generate(self, prompt: str, size: ImageSize) -> List[Path]:
        """Generate images for ``prompt``.

        Returns:
            Paths of the saved image files, possibly empty.
        """
        pass


class OpenAIImageGenerator(ImageGenerator):
    """Requests images from the OpenAI Images API and downloads them."""

    def __init__(
        self,
        client: Any = None,
        http_client: Optional[httpx.Client] = None,
        output_dir: Optional[str] = None,
        model: Optional[str] = None,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the generator.

        Args:
            client: OpenAI client; built from the environment when omitted.
            http_client: httpx client used for downloads.
            output_dir: Directory for saved images, defaults to
                ``image.output_dir``.
            model: Image model, the service default when None.
            user: End-user tag sent with the request.
            timeout: Download timeout in seconds.
        """
        self.client = client
        self.http_client = http_client
        self.output_dir = Path(output_dir or config.get("image.output_dir", "data"))
        self.model = model or config.get("image.model")
        self.user = user or config.get("image.user", "voicesketch")
        self.timeout = timeout or config.get("image.timeout", 60.0)

    def generate(self, prompt: str, size: ImageSize = ImageSize.S256) -> List[Path]:
        if not prompt.strip():
            raise ImageGenerationError("Cannot generate an image from an empty prompt")

        urls = self._request_urls(prompt, size)
        if not urls:
            logger.warning("🟡 Image service returned no images")
            return []

        self.output_dir.mkdir(parents=True, exist_ok=True)
        http_client = self.http_client or httpx.Client(timeout=self.timeout)
        try:
            return [self._download(http_client, url, i) for i, url in enumerate(urls)]
        finally:
            if self.http_client is None:
                http_client.close()

    def _request_urls(self, prompt: str, size: ImageSize) -> List[str]:
        request = {
            "prompt": prompt,
            "n": 1,
            "size": size.value,
            "response_format": "url",
            "user": self.user,
        }
        if self.model:
            request["model"] = self.model

        logger.info(f"Requesting {size.value} image for prompt: {prompt[:50]}...")
        try:
            client = self.client or openai.OpenAI()
            response = client.images.generate(**request)
        except openai.OpenAIError as e:
            logger.error(f"🛑 Image request failed: {e}")
            raise ImageGenerationError(f"Image request failed: {e}") from e

        return [item.url for item in response.data if getattr(item, "url", None)]

    def _download(self, http_client: httpx.Client, url: str, index: int) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        path = self.output_dir / f"image_{timestamp}_{index}.png"
        try:
            response = http_client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"🛑 Image download failed: {e}")
            raise ImageGenerationError(f"Image download failed: {e}") from e

        try:
            path.write_bytes(response.content)
        except OSError as e:
            raise ImageGenerationError(f"Failed to save image {path}: {e}") from e

        logger.info(f"Image saved: {path}")
        return path
