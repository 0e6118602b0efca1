"""Prompt assembly from transcript segments."""

from typing import Iterable, Optional

from voicesketch.asr.transcriber import Segment
from voicesketch.config.config_loader import config


def assemble_prompt(
    segments: Iterable[Segment], separator: Optional[str] = None
) -> str:
    """Join segment texts, in the order given, into one prompt.

    Args:
        segments: Segments in chronological order.
        separator: Text placed between segments. Defaults to
            ``prompt.separator`` (empty: plain concatenation).

    Returns:
        The prompt string.
    """
    if separator is None:
        separator = config.get("prompt.separator", "")
    return separator.join(segment.text for segment in segments)
