"""Text handling for transcripts."""

from voicesketch.text.prompt import assemble_prompt

__all__ = ["assemble_prompt"]
