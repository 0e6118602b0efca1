"""Sample formats, stream configuration and per-format sample converters.

The capture callback never inspects the sample format itself: the converter
for a stream is looked up once in ``CONVERTERS`` before the stream opens and
bound into the callback.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Union

import numpy as np

from voicesketch.utils.exceptions import UnsupportedSampleFormatError


class SampleEncoding(Enum):
    """Numeric encoding of a waveform sample."""

    INT = "int"
    FLOAT = "float"


class SampleFormat(Enum):
    """Sample formats the capture path supports.

    Values are the dtype names used by sounddevice.
    """

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    FLOAT32 = "float32"

    @property
    def bits(self) -> int:
        return np.dtype(self.value).itemsize * 8

    @property
    def is_float(self) -> bool:
        return self is SampleFormat.FLOAT32

    @property
    def encoding(self) -> SampleEncoding:
        return SampleEncoding.FLOAT if self.is_float else SampleEncoding.INT

    @classmethod
    def parse(cls, value: Union["SampleFormat", str]) -> "SampleFormat":
        """Resolve a format tag, rejecting anything outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise UnsupportedSampleFormatError(
                f"Unsupported sample format '{value}'"
            ) from None


@dataclass(frozen=True)
class StreamConfig:
    """Input stream configuration produced once by the device negotiator."""

    sample_format: Union[SampleFormat, str]
    channel_count: int
    sample_rate: int

    def __post_init__(self) -> None:
        if self.channel_count < 1:
            raise ValueError("channel_count must be positive")
        if self.sample_rate < 1:
            raise ValueError("sample_rate must be positive")


# libsndfile WAV subtype for each (bits, encoding) pair. WAV stores 8-bit
# PCM unsigned, libsndfile handles the offset.
_WAV_SUBTYPES = {
    (8, SampleEncoding.INT): "PCM_U8",
    (16, SampleEncoding.INT): "PCM_16",
    (32, SampleEncoding.INT): "PCM_32",
    (32, SampleEncoding.FLOAT): "FLOAT",
}


@dataclass(frozen=True)
class WaveformSpec:
    """Header description of a waveform file."""

    channels: int
    sample_rate: int
    bits_per_sample: int
    sample_encoding: SampleEncoding

    @classmethod
    def from_stream_config(cls, stream_config: StreamConfig) -> "WaveformSpec":
        fmt = SampleFormat.parse(stream_config.sample_format)
        return cls(
            channels=stream_config.channel_count,
            sample_rate=stream_config.sample_rate,
            bits_per_sample=fmt.bits,
            sample_encoding=fmt.encoding,
        )

    @property
    def dtype(self) -> str:
        """In-memory dtype of samples written to this file."""
        if self.sample_encoding is SampleEncoding.FLOAT:
            return "float32"
        return "int32" if self.bits_per_sample > 16 else "int16"

    @property
    def subtype(self) -> str:
        try:
            return _WAV_SUBTYPES[(self.bits_per_sample, self.sample_encoding)]
        except KeyError:
            raise UnsupportedSampleFormatError(
                f"No waveform encoding for {self.bits_per_sample}-bit "
                f"{self.sample_encoding.value} samples"
            ) from None


Converter = Callable[[np.ndarray], np.ndarray]


def _widen_int8(block: np.ndarray) -> np.ndarray:
    # soundfile has no int8 write path; shift into the high byte of int16
    return block.astype(np.int16) << 8


def _as_int16(block: np.ndarray) -> np.ndarray:
    return np.asarray(block, dtype=np.int16)


def _as_int32(block: np.ndarray) -> np.ndarray:
    return np.asarray(block, dtype=np.int32)


def _as_float32(block: np.ndarray) -> np.ndarray:
    return np.asarray(block, dtype=np.float32)


CONVERTERS: Dict[SampleFormat, Converter] = {
    SampleFormat.INT8: _widen_int8,
    SampleFormat.INT16: _as_int16,
    SampleFormat.INT32: _as_int32,
    SampleFormat.FLOAT32: _as_float32,
}


def converter_for(sample_format: Union[SampleFormat, str]) -> Converter:
    """Return the block converter for a stream's sample format.

    Raises:
        UnsupportedSampleFormatError: For formats outside the supported set.
    """
    return CONVERTERS[SampleFormat.parse(sample_format)]
