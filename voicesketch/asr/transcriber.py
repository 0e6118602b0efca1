"""ASR transcription of finished recordings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

import numpy as np
import soundfile as sf

from voicesketch.asr.engine import FasterWhisperEngine, SpeechEngine
from voicesketch.config.config_loader import config
from voicesketch.utils.exceptions import FileOperationError, TranscriptionError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)

PCM16_SUBTYPE = "PCM_16"
PCM16_WIDTH = 2
PCM16_SCALE = 32768.0

EngineFactory = Callable[[str], SpeechEngine]


@dataclass(frozen=True)
class Segment:
    """A span of recognized speech. Timestamps are in seconds."""

    start: float
    end: float
    text: str


def decode_pcm16(raw: bytes) -> np.ndarray:
    """Reinterpret raw native-endian 16-bit samples as float32 in [-1, 1).

    A trailing partial sample is discarded.
    """
    usable = len(raw) - len(raw) % PCM16_WIDTH
    samples = np.frombuffer(raw[:usable], dtype=np.int16)
    return samples.astype(np.float32) / PCM16_SCALE


def load_pcm16(
    audio_path: Union[str, Path], expected_rate: Optional[int] = None
) -> np.ndarray:
    """Load a 16-bit PCM waveform file as a mono float32 buffer.

    Args:
        audio_path: Resampled recording.
        expected_rate: Sample rate the file must have, if given.

    Returns:
        Mono float32 samples.

    Raises:
        FileOperationError: If the file cannot be read.
        TranscriptionError: If the file is not 16-bit PCM at the expected rate.
    """
    try:
        info = sf.info(str(audio_path))
    except RuntimeError as e:
        raise FileOperationError(f"Failed to read audio {audio_path}: {e}") from e

    if info.subtype != PCM16_SUBTYPE:
        raise TranscriptionError(
            f"{audio_path} is {info.subtype}, the speech engine needs {PCM16_SUBTYPE}"
        )
    if expected_rate is not None and info.samplerate != expected_rate:
        raise TranscriptionError(
            f"{audio_path} is {info.samplerate}Hz, the speech engine needs "
            f"{expected_rate}Hz"
        )

    try:
        with sf.SoundFile(str(audio_path)) as audio_file:
            raw = bytes(audio_file.buffer_read(dtype="int16"))
    except RuntimeError as e:
        raise FileOperationError(f"Failed to read audio {audio_path}: {e}") from e

    samples = decode_pcm16(raw)
    if info.channels > 1:
        usable = len(samples) - len(samples) % info.channels
        samples = samples[:usable].reshape(-1, info.channels).mean(axis=1)
        samples = samples.astype(np.float32)

    logger.debug(
        f"📡 Loaded audio: {len(samples)} samples @ {info.samplerate}Hz "
        f"({len(samples) / info.samplerate:.1f}s)"
    )
    return samples


class Transcriber:
    """Turns a resampled recording into ordered, timestamped segments."""

    def __init__(
        self,
        engine_factory: Optional[EngineFactory] = None,
        expected_sample_rate: Optional[int] = None,
    ) -> None:
        """Initialize the transcriber.

        Args:
            engine_factory: Builds a speech engine for a model path. Defaults
                to :class:`FasterWhisperEngine`.
            expected_sample_rate: Rate the engine expects, defaults to
                ``resample.target_rate``.
        """
        self.engine_factory = engine_factory or FasterWhisperEngine
        self.expected_sample_rate = expected_sample_rate or config.get(
            "resample.target_rate", FasterWhisperEngine.SAMPLE_RATE
        )

    def transcribe(
        self, model_path: Union[str, Path], audio_path: Union[str, Path]
    ) -> List[Segment]:
        """Transcribe a recording.

        Args:
            model_path: Speech model artifact.
            audio_path: 16-bit PCM recording at the engine's rate.

        Returns:
            Segments in chronological order.

        Raises:
            ModelLoadError: If the model cannot be loaded.
            FileOperationError: If the recording cannot be read.
            TranscriptionError: If decoding or segment retrieval fails.
        """
        with self.engine_factory(str(model_path)) as engine:
            samples = load_pcm16(audio_path, self.expected_sample_rate)
            self._validate_audio_for_asr(samples)
            engine.decode(samples)
            segments = self._collect_segments(engine)

        logger.info(f"Transcription complete: {len(segments)} segments")
        return segments

    def _collect_segments(self, engine: SpeechEngine) -> List[Segment]:
        try:
            count = engine.segment_count()
        except Exception as e:
            raise TranscriptionError(f"Failed to get number of segments: {e}") from e

        segments = []
        for index in range(count):
            try:
                segment = Segment(
                    start=engine.segment_start(index),
                    end=engine.segment_end(index),
                    text=engine.segment_text(index),
                )
            except Exception as e:
                raise TranscriptionError(f"Failed to get segment {index}: {e}") from e

            if segment.start > segment.end:
                raise TranscriptionError(
                    f"Segment {index} ends before it starts "
                    f"({segment.start} > {segment.end})"
                )
            segments.append(segment)

        # Engines may number segments out of order; time order is authoritative
        return sorted(segments, key=lambda s: (s.start, s.end))

    def _validate_audio_for_asr(self, samples: np.ndarray) -> None:
        """Log audio quality metrics before decoding."""
        if samples.size == 0:
            logger.warning("🟡 Recording is empty - transcript will be empty")
            return

        rms = float(np.sqrt(np.mean(samples**2)))
        peak = float(np.max(np.abs(samples)))
        duration = len(samples) / self.expected_sample_rate

        if rms < 0.001:
            logger.warning(
                f"🟡 Very low RMS {rms:.6f} - possible silence or wrong microphone"
            )

        clipped_samples = int(np.sum(np.abs(samples) > 0.99))
        if clipped_samples > len(samples) * 0.01:  # More than 1% clipped
            logger.warning(
                f"🟡 Audio clipping detected in {clipped_samples} samples "
                f"({clipped_samples / len(samples) * 100:.1f}%)"
            )

        logger.debug(
            f"ASR audio validation: Duration={duration:.2f}s, "
            f"RMS={rms:.4f}, Peak={peak:.4f}"
        )
