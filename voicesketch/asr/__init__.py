"""Speech recognition: engine adapters and the segment transcriber."""

from voicesketch.asr.engine import FasterWhisperEngine, SpeechEngine
from voicesketch.asr.transcriber import Segment, Transcriber

__all__ = ["FasterWhisperEngine", "Segment", "SpeechEngine", "Transcriber"]
