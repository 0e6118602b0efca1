"""Live audio capture into a waveform sink."""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from voicesketch.audio import diagnostics
from voicesketch.audio.device_manager import InputDevice, load_backend
from voicesketch.audio.formats import SampleFormat, StreamConfig, converter_for
from voicesketch.audio.waveform_writer import WaveformSink
from voicesketch.utils.exceptions import CaptureError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)

StreamFactory = Callable[..., Any]

# Same ceiling as the audio.record_duration setting
MAX_DURATION = 3600.0


def check_duration(duration: float) -> float:
    """Reject capture lengths that are not positive, finite and at most an hour.

    Raises:
        ValueError: If the duration is out of range.
    """
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError(f"Capture duration must be a positive number, got {duration}")
    if duration > MAX_DURATION:
        raise ValueError(f"Capture duration cannot exceed {MAX_DURATION:g} seconds")
    return duration


@dataclass(frozen=True)
class CaptureStats:
    """What happened during one capture run."""

    elapsed: float
    frames_captured: int
    batches_written: int
    batches_dropped: int
    callback_errors: int
    status_events: int
    cancelled: bool


class CaptureSession:
    """Owns one live input stream that feeds a :class:`WaveformSink`.

    The sample converter is chosen once, when the session is built, so an
    unsupported format fails before any hardware stream is opened.
    """

    def __init__(
        self,
        device: InputDevice,
        stream_config: StreamConfig,
        sink: WaveformSink,
        stream_factory: Optional[StreamFactory] = None,
    ) -> None:
        """Initialize the capture session.

        Args:
            device: Input device to open.
            stream_config: Negotiated stream configuration.
            sink: Open sink receiving converted samples.
            stream_factory: Callable building an input stream, with the
                keyword arguments of ``sounddevice.InputStream``. Defaults to
                ``sounddevice.InputStream``.

        Raises:
            UnsupportedSampleFormatError: If the stream's sample format is
                not one of int8, int16, int32 or float32.
        """
        self.device = device
        self.stream_config = stream_config
        self.sample_format = SampleFormat.parse(stream_config.sample_format)
        self.sink = sink
        self._convert = converter_for(self.sample_format)
        self._stream_factory = stream_factory

        self._frames_captured = 0
        self._batches_written = 0
        self._batches_dropped = 0
        self._callback_errors = 0
        self._status_events = 0

    def _audio_callback(
        self, indata: np.ndarray, frames: int, time_info: Any, status: Any
    ) -> None:
        """Convert one block and hand it to the sink without blocking.

        Runs on the PortAudio thread: nothing here may raise or wait.

        Args:
            indata: Input block shaped ``(frames, channels)``.
            frames: Number of frames.
            time_info: Timing information.
            status: Stream status flags.
        """
        if status:
            self._status_events += 1

        try:
            if self.sink.try_write_batch(self._convert(indata)):
                self._frames_captured += frames
                self._batches_written += 1
            else:
                self._batches_dropped += 1
        except Exception:
            # dropped; reported after teardown
            self._callback_errors += 1
            self._batches_dropped += 1

    def _open_stream(self) -> Any:
        factory = self._stream_factory
        if factory is None:
            factory = load_backend().InputStream

        device_index = self.device.index if self.device.index >= 0 else None
        return factory(
            device=device_index,
            channels=self.stream_config.channel_count,
            samplerate=self.stream_config.sample_rate,
            dtype=self.sample_format.value,
            callback=self._audio_callback,
        )

    def run(
        self, duration: float, cancel: Optional[threading.Event] = None
    ) -> CaptureStats:
        """Capture for ``duration`` seconds of wall-clock time.

        The sink is marked as having a live producer until the stream has
        been stopped and closed, so it cannot be finalized concurrently.

        Args:
            duration: Capture length in seconds.
            cancel: Optional event that ends the capture early when set.

        Returns:
            Capture statistics.

        Raises:
            ValueError: If the duration is out of range.
            CaptureError: If the stream cannot be built, started or stopped.
        """
        check_duration(duration)

        waiter = cancel if cancel is not None else threading.Event()

        with self.sink.producer():
            try:
                stream = self._open_stream()
            except Exception as e:
                self._report_stream_failure(e)
                raise CaptureError(f"Failed to build input stream: {e}") from e

            started_at = time.monotonic()
            try:
                try:
                    stream.start()
                except Exception as e:
                    self._report_stream_failure(e)
                    raise CaptureError(f"Failed to start input stream: {e}") from e

                logger.info(
                    f"Recording {duration:g}s from {self.device.name} "
                    f"({self.sample_format.value}, "
                    f"{self.stream_config.channel_count}ch, "
                    f"{self.stream_config.sample_rate}Hz)"
                )
                cancelled = waiter.wait(duration)
            finally:
                self._close_stream(stream)
            elapsed = time.monotonic() - started_at

        stats = CaptureStats(
            elapsed=elapsed,
            frames_captured=self._frames_captured,
            batches_written=self._batches_written,
            batches_dropped=self._batches_dropped,
            callback_errors=self._callback_errors,
            status_events=self._status_events,
            cancelled=cancelled,
        )
        self._log_stats(stats)
        return stats

    def _close_stream(self, stream: Any) -> None:
        try:
            try:
                stream.stop()
            finally:
                stream.close()
        except Exception as e:
            logger.error(f"🛑 Failed to stop input stream: {e}")
            raise CaptureError(f"Failed to stop input stream: {e}") from e

    def _report_stream_failure(self, error: Exception) -> None:
        diagnostics.log_detailed_error_info(
            error,
            self.device.name,
            self.stream_config.sample_rate,
            self.stream_config.channel_count,
            self.sample_format.value,
        )
        diagnostics.suggest_audio_fixes(error)

    def _log_stats(self, stats: CaptureStats) -> None:
        captured = stats.frames_captured / self.stream_config.sample_rate
        if stats.cancelled:
            logger.info(f"Recording cancelled after {stats.elapsed:.2f}s")
        logger.info(
            f"Stopped recording: {captured:.2f}s captured "
            f"({stats.batches_written} blocks)"
        )
        if stats.batches_dropped:
            logger.warning(
                f"🟡 Dropped {stats.batches_dropped} blocks "
                f"({stats.callback_errors} conversion errors)"
            )
        if stats.status_events:
            logger.warning(
                f"Audio callback reported status flags {stats.status_events} times"
            )
