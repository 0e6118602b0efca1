"""Thread-safe incremental waveform writer.

The sink is shared by two threads: the PortAudio callback thread, which only
ever calls :meth:`WaveformSink.try_write_batch`, and the orchestration
thread, which creates and finalizes it. Finalizing requires that no capture
stream is attached any more, see :meth:`WaveformSink.producer`.
"""

import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Union

import numpy as np
import soundfile as sf

from voicesketch.audio.formats import WaveformSpec
from voicesketch.utils.exceptions import AlreadyFinalizedError, FileOperationError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


class SinkState(Enum):
    """Lifecycle of a waveform sink."""

    ABSENT = "absent"
    OPEN = "open"
    FINALIZED = "finalized"


class WaveformSink:
    """Mutex-guarded optional WAV writer that can be finalized exactly once."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.path: Optional[Path] = None
        self.spec: Optional[WaveformSpec] = None
        self.frames_written = 0
        self.dropped_batches = 0
        self._file: Optional[sf.SoundFile] = None
        self._state = SinkState.ABSENT
        self._quiesced = threading.Event()
        self._quiesced.set()

    @classmethod
    def create(cls, path: Union[str, Path], spec: WaveformSpec) -> "WaveformSink":
        """Open a new waveform file and write its header.

        Args:
            path: Destination file, truncated if it exists.
            spec: Channel count, rate, bit depth and encoding.

        Returns:
            An open sink.

        Raises:
            FileOperationError: If the file cannot be created.
        """
        sink = cls()
        sink.open(path, spec)
        return sink

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SinkState.OPEN

    def open(self, path: Union[str, Path], spec: WaveformSpec) -> None:
        """Transition an absent sink to open."""
        with self.lock:
            if self._state is not SinkState.ABSENT:
                raise FileOperationError(f"Sink is already {self._state.value}")

            path = Path(path)
            try:
                self._file = sf.SoundFile(
                    str(path),
                    mode="w",
                    samplerate=spec.sample_rate,
                    channels=spec.channels,
                    subtype=spec.subtype,
                    format="WAV",
                )
            except (RuntimeError, OSError) as e:
                raise FileOperationError(
                    f"Failed to create waveform file {path}: {e}"
                ) from e

            self.path = path
            self.spec = spec
            self._state = SinkState.OPEN

        logger.debug(
            f"Waveform sink open: {path} ({spec.channels}ch, {spec.sample_rate}Hz, "
            f"{spec.bits_per_sample}-bit {spec.sample_encoding.value})"
        )

    def write_sample(self, value) -> None:
        """Append a single sample. Silently ignored unless the sink is open."""
        with self.lock:
            if self._state is not SinkState.OPEN:
                return
            frame = np.full((1, self.spec.channels), value, dtype=self.spec.dtype)
            try:
                self._write_locked(frame)
            except (RuntimeError, OSError, TypeError, ValueError) as e:
                logger.debug(f"Dropped sample: {e}")

    def try_write_batch(self, samples: np.ndarray) -> bool:
        """Write a batch without ever waiting for the lock.

        On contention, or when the sink is not open, the batch is dropped.
        Capture must never stall behind the writer.

        Args:
            samples: Block shaped ``(frames,)`` or ``(frames, channels)`` in
                a dtype soundfile can write.

        Returns:
            True if the batch was written.
        """
        if not self.lock.acquire(blocking=False):
            self.dropped_batches += 1
            return False
        try:
            if self._state is not SinkState.OPEN:
                return False
            self._write_locked(samples)
            return True
        finally:
            self.lock.release()

    def _write_locked(self, samples: np.ndarray) -> None:
        self._file.write(samples)
        self.frames_written += len(samples)

    @contextmanager
    def producer(self) -> Iterator["WaveformSink"]:
        """Mark the sink as fed by a live stream for the duration of the block.

        The block must not exit before the stream has been stopped and
        closed; :meth:`finalize` is refused until it does.
        """
        self._quiesced.clear()
        try:
            yield self
        finally:
            self._quiesced.set()

    def finalize(self) -> None:
        """Flush the header and close the file.

        Raises:
            AlreadyFinalizedError: If the sink is not open.
            FileOperationError: If a producer is still attached or the file
                cannot be flushed.
        """
        if not self._quiesced.is_set():
            raise FileOperationError(
                "Cannot finalize while a capture stream is still attached"
            )

        with self.lock:
            if self._state is not SinkState.OPEN:
                raise AlreadyFinalizedError(
                    f"Waveform sink is {self._state.value}, cannot finalize"
                )
            file, self._file = self._file, None
            self._state = SinkState.FINALIZED
            try:
                file.close()
            except (RuntimeError, OSError) as e:
                raise FileOperationError(
                    f"Failed to finalize waveform file {self.path}: {e}"
                ) from e

        logger.info(
            f"Waveform finalized: {self.path} ({self.frames_written} frames, "
            f"{self.dropped_batches} batches dropped)"
        )
