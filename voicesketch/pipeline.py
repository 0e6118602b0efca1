"""Sequential capture → waveform → transcript → prompt pipeline."""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from voicesketch.asr.transcriber import Segment, Transcriber
from voicesketch.audio.device_manager import DeviceNegotiator
from voicesketch.audio.formats import StreamConfig, WaveformSpec
from voicesketch.audio.recorder import (
    CaptureSession,
    CaptureStats,
    StreamFactory,
    check_duration,
)
from voicesketch.audio.resampler import FFmpegResampler, Resampler
from voicesketch.audio.waveform_writer import WaveformSink
from voicesketch.config.config_loader import config
from voicesketch.imaging.generator import ImageGenerator, ImageSize
from voicesketch.text.prompt import assemble_prompt
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produced."""

    recording_path: Path
    stream_config: StreamConfig
    capture: CaptureStats
    segments: List[Segment]
    prompt: str
    image_paths: List[Path] = field(default_factory=list)


class Pipeline:
    """Runs negotiate → capture → finalize → resample → transcribe → assemble.

    Stages run one after another on the calling thread and the first failure
    aborts the run. Nothing is retried.
    """

    def __init__(
        self,
        negotiator: Optional[DeviceNegotiator] = None,
        resampler: Optional[Resampler] = None,
        transcriber: Optional[Transcriber] = None,
        image_generator: Optional[ImageGenerator] = None,
        stream_factory: Optional[StreamFactory] = None,
        target_rate: Optional[int] = None,
        image_size: Optional[ImageSize] = None,
    ) -> None:
        self.negotiator = negotiator
        self.resampler = resampler or FFmpegResampler()
        self.transcriber = transcriber or Transcriber()
        self.image_generator = image_generator
        self.stream_factory = stream_factory
        self.target_rate = target_rate or config.get("resample.target_rate", 16000)
        self.image_size = image_size or ImageSize(config.get("image.size", "256x256"))

    def run(
        self,
        output_path: Union[str, Path],
        duration: float,
        model_path: Union[str, Path],
        cancel: Optional[threading.Event] = None,
        on_capture_end: Optional[Callable[[], None]] = None,
    ) -> PipelineResult:
        """Record, transcribe and assemble a prompt.

        Args:
            output_path: Where the recording is written.
            duration: Capture length in seconds.
            model_path: Speech model artifact.
            cancel: Optional event that ends the capture early.
            on_capture_end: Called once the capture stage is over, whether
                it succeeded or not, before the recording is processed.

        Returns:
            The run's result.

        Raises:
            ValueError: If the duration is not a positive, finite number of
                seconds. Nothing has been opened or created at that point.
        """
        check_duration(duration)
        output_path = Path(output_path)
        negotiator = self.negotiator or DeviceNegotiator()

        # Device, config and format errors surface before the file exists
        stream_config, device = negotiator.negotiate()
        spec = WaveformSpec.from_stream_config(stream_config)

        sink = WaveformSink.create(output_path, spec)
        try:
            session = CaptureSession(device, stream_config, sink, self.stream_factory)
            capture = session.run(duration, cancel)
        finally:
            # The stream is stopped and closed here; no callback can still
            # run. The header is written on failure too.
            sink.finalize()
            if on_capture_end is not None:
                on_capture_end()
        logger.info(f"Recording {output_path} complete")

        self.resampler.resample(output_path, self.target_rate)
        segments = self.transcriber.transcribe(model_path, output_path)
        prompt = assemble_prompt(segments)
        logger.info(f"Prompt: {prompt}")

        image_paths: List[Path] = []
        if self.image_generator is not None:
            image_paths = self.image_generator.generate(prompt, self.image_size)

        return PipelineResult(
            recording_path=output_path,
            stream_config=stream_config,
            capture=capture,
            segments=segments,
            prompt=prompt,
            image_paths=image_paths,
        )
