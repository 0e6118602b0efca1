"""Speech engine adapters.

The transcriber talks to the engine through :class:`SpeechEngine`: decode a
float PCM buffer once, then read the segments back by index.
"""

import gc
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from voicesketch.config.config_loader import config
from voicesketch.utils.exceptions import ModelLoadError, TranscriptionError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


class SpeechEngine(ABC):
    """Contract for an offline speech-to-text engine.

    Engines are context managers: the model is loaded on entry and every
    engine resource is released on exit, whatever the outcome.
    """

    def __enter__(self) -> "SpeechEngine":
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def load(self) -> None:
        """Load the model artifact.

        Raises:
            ModelLoadError: If the artifact is missing or malformed.
        """
        pass

    @abstractmethod
    def decode(self, samples: np.ndarray) -> None:
        """Run a single decoding pass over mono float32 samples.

        Raises:
            TranscriptionError: If the engine reports a decode failure.
        """
        pass

    @abstractmethod
    def segment_count(self) -> int:
        pass

    @abstractmethod
    def segment_start(self, index: int) -> float:
        pass

    @abstractmethod
    def segment_end(self, index: int) -> float:
        pass

    @abstractmethod
    def segment_text(self, index: int) -> str:
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the model and any decode state."""
        pass


class FasterWhisperEngine(SpeechEngine):
    """Whisper through faster-whisper (CTranslate2), fixed to greedy translation."""

    SAMPLE_RATE = 16000

    def __init__(
        self,
        model_path: str,
        device: Optional[str] = None,
        compute_type: Optional[str] = None,
        language: Optional[str] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            model_path: Local CTranslate2 Whisper model directory.
            device: Inference device, defaults to ``asr.device``.
            compute_type: CTranslate2 compute type, defaults to
                ``asr.compute_type``.
            language: Source language code, None to auto-detect.
        """
        self.model_path = Path(model_path)
        self.device = device or config.get("asr.device", "cpu")
        self.compute_type = compute_type or config.get("asr.compute_type", "int8")
        self.language = language or config.get("asr.language")
        self.model: Any = None
        self._segments: List[Any] = []

    def load(self) -> None:
        """Load the model into memory with a progress indicator."""
        if self.model is not None:
            return

        if not self.model_path.exists():
            raise ModelLoadError(f"Model not found: {self.model_path}")

        from tqdm import tqdm

        logger.info(f"Loading model: {self.model_path}")
        try:
            from faster_whisper import WhisperModel

            # Keep the engine quiet; only our own progress goes to the console
            logging.getLogger("faster_whisper").setLevel(logging.WARNING)

            with tqdm(
                total=100, desc="Loading model", bar_format="{desc}: {bar}"
            ) as pbar:
                self.model = WhisperModel(
                    str(self.model_path),
                    device=self.device,
                    compute_type=self.compute_type,
                    cpu_threads=1,
                    num_workers=1,
                    local_files_only=True,
                )
                pbar.update(100)
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise ModelLoadError(f"Failed to load model {self.model_path}: {e}") from e

        memory_stats = self.get_memory_usage()
        logger.info(f"Model loaded - Memory usage: {memory_stats['rss_mb']:.1f}MB RSS")

    def decode(self, samples: np.ndarray) -> None:
        if self.model is None:
            raise TranscriptionError("Model is not loaded")

        try:
            # beam_size=1 with a single temperature: one greedy pass, no fallback
            segments, info = self.model.transcribe(
                samples,
                task="translate",
                language=self.language,
                beam_size=1,
                best_of=1,
                temperature=0.0,
                vad_filter=False,
            )
            self._segments = list(segments)
        except Exception as e:
            raise TranscriptionError(f"Decoding failed: {e}") from e

        logger.debug(
            f"Decoded {len(self._segments)} segments "
            f"(detected language: {info.language})"
        )

    def segment_count(self) -> int:
        return len(self._segments)

    def segment_start(self, index: int) -> float:
        return float(self._segments[index].start)

    def segment_end(self, index: int) -> float:
        return float(self._segments[index].end)

    def segment_text(self, index: int) -> str:
        return str(self._segments[index].text)

    def get_memory_usage(self) -> dict:
        """Get current memory usage information.

        Returns:
            Dictionary with memory usage stats.
        """
        import psutil

        process = psutil.Process()
        memory_info = process.memory_info()

        return {
            "model_loaded": self.model is not None,
            "rss_mb": memory_info.rss / 1024 / 1024,
            "vms_mb": memory_info.vms / 1024 / 1024,
            "percent": process.memory_percent(),
        }

    def close(self) -> None:
        self._segments = []
        if self.model is not None:
            self.model = None
            gc.collect()
            logger.debug("Model unloaded")
