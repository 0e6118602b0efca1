"""Resampling of captured recordings to the speech engine's rate."""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import ffmpeg
import soundfile as sf

from voicesketch.config.config_loader import config
from voicesketch.utils.exceptions import ExternalToolError, FileOperationError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)

# The transcriber reads 16-bit mono samples; every resampler must emit them.
OUTPUT_SUBTYPE = "PCM_16"
OUTPUT_CHANNELS = 1


class Resampler(ABC):
    """Contract for converting a waveform file to another sample rate in place."""

    @abstractmethod
    def resample(self, path: Union[str, Path], target_rate: int) -> Path:
        """Replace the file at ``path`` with a 16-bit mono copy at ``target_rate``.

        The original must be left untouched if conversion fails.

        Returns:
            The path of the resampled file (the same path).
        """
        pass


class FFmpegResampler(Resampler):
    """Resamples through an FFmpeg subprocess and swaps the result into place."""

    def __init__(self, binary: Optional[str] = None) -> None:
        """Initialize the resampler.

        Args:
            binary: FFmpeg executable, defaults to ``resample.ffmpeg_binary``.
        """
        self.binary = binary or config.get("resample.ffmpeg_binary", "ffmpeg")

    def resample(self, path: Union[str, Path], target_rate: int) -> Path:
        path = Path(path)
        if not path.exists():
            raise FileOperationError(f"Recording not found: {path}")

        # Same directory as the target so the final rename stays atomic
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=".wav", dir=path.parent
        )
        os.close(fd)
        temp_path = Path(temp_name)

        try:
            logger.info(f"🔄 Resampling {path.name} to {target_rate}Hz...")
            self._run_ffmpeg(path, temp_path, target_rate)
            self._verify_output(temp_path, target_rate)
            os.replace(temp_path, path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

        logger.info(f"✅ Resampled {path.name} to {target_rate}Hz mono 16-bit PCM")
        return path

    def _run_ffmpeg(self, source: Path, destination: Path, target_rate: int) -> None:
        stream = ffmpeg.input(str(source))
        stream = ffmpeg.output(
            stream,
            str(destination),
            acodec="pcm_s16le",
            ac=OUTPUT_CHANNELS,
            ar=target_rate,
            y=None,  # Overwrite the temporary file without prompting
        )

        try:
            ffmpeg.run(stream, cmd=self.binary, quiet=True)
        except ffmpeg.Error as e:
            detail = e.stderr.decode(errors="replace").strip() if e.stderr else str(e)
            logger.error(f"🛑 FFmpeg failed: {detail}")
            raise ExternalToolError(f"FFmpeg resampling failed: {detail}") from e
        except OSError as e:
            raise ExternalToolError(
                f"Could not run '{self.binary}': {e}. Please install FFmpeg"
            ) from e

    def _verify_output(self, output: Path, target_rate: int) -> None:
        try:
            info = sf.info(str(output))
        except RuntimeError as e:
            raise ExternalToolError(f"FFmpeg produced an unreadable file: {e}") from e

        if (
            info.samplerate != target_rate
            or info.subtype != OUTPUT_SUBTYPE
            or info.channels != OUTPUT_CHANNELS
        ):
            raise ExternalToolError(
                f"FFmpeg output is {info.samplerate}Hz {info.subtype} "
                f"{info.channels}ch, expected {target_rate}Hz {OUTPUT_SUBTYPE} mono"
            )
