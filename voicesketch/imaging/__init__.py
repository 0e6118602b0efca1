"""Image generation collaborators."""

from voicesketch.imaging.generator import (
    ImageGenerator,
    ImageSize,
    OpenAIImageGenerator,
)

__all__ = ["ImageGenerator", "ImageSize", "OpenAIImageGenerator"]
