"""Shared fakes for the audio backend, input streams and the speech engine."""

import os
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pytest
import soundfile as sf

from voicesketch.asr.engine import SpeechEngine
from voicesketch.asr.transcriber import Segment
from voicesketch.audio.device_manager import InputDevice
from voicesketch.audio.resampler import Resampler
from voicesketch.utils.exceptions import TranscriptionError


class FakePortAudioError(Exception):
    """Stands in for sounddevice.PortAudioError."""


class FakeBackend:
    """Minimal sounddevice query surface."""

    PortAudioError = FakePortAudioError

    def __init__(
        self,
        default_input: Optional[Dict] = None,
        accepted_formats: Sequence[str] = ("int16",),
        devices: Optional[List[Dict]] = None,
    ) -> None:
        self.default_input = default_input
        self.accepted_formats = tuple(accepted_formats)
        self.devices = devices or []
        self.checked: List[str] = []

    def query_devices(self, device=None, kind=None):
        if kind is None and device is None:
            return list(self.devices)
        if self.default_input is None:
            raise FakePortAudioError("No input device found")
        return dict(self.default_input)

    def check_input_settings(
        self, device=None, channels=None, dtype=None, samplerate=None
    ):
        self.checked.append(dtype)
        if dtype not in self.accepted_formats:
            raise FakePortAudioError(f"Invalid sample format: {dtype}")


class FakeStream:
    """Input stream that delivers a fixed list of blocks when started."""

    def __init__(
        self,
        blocks: Sequence[np.ndarray],
        fail_on_start: bool = False,
        fail_on_stop: bool = False,
        **kwargs,
    ) -> None:
        self.blocks = list(blocks)
        self.kwargs = kwargs
        self.callback = kwargs["callback"]
        self.fail_on_start = fail_on_start
        self.fail_on_stop = fail_on_stop
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self) -> None:
        if self.fail_on_start:
            raise FakePortAudioError("Error starting stream")
        self.started = True
        for block in self.blocks:
            self.callback(block, len(block), None, 0)

    def stop(self) -> None:
        if self.fail_on_stop:
            raise FakePortAudioError("Error stopping stream: device unavailable")
        self.stopped = True

    def close(self) -> None:
        self.closed = True


class StreamRecorder:
    """Stream factory that remembers the streams it built."""

    def __init__(
        self,
        blocks: Sequence[np.ndarray],
        fail_on_start: bool = False,
        fail_on_stop: bool = False,
    ) -> None:
        self.blocks = blocks
        self.fail_on_start = fail_on_start
        self.fail_on_stop = fail_on_stop
        self.streams: List[FakeStream] = []

    def __call__(self, **kwargs) -> FakeStream:
        stream = FakeStream(
            self.blocks,
            fail_on_start=self.fail_on_start,
            fail_on_stop=self.fail_on_stop,
            **kwargs,
        )
        self.streams.append(stream)
        return stream


class StubEngine(SpeechEngine):
    """Speech engine returning canned segments in its own internal order."""

    def __init__(
        self,
        segments: Sequence[Segment],
        fail_decode: bool = False,
        fail_text_at: Optional[int] = None,
    ) -> None:
        self.segments = list(segments)
        self.fail_decode = fail_decode
        self.fail_text_at = fail_text_at
        self.loaded = False
        self.closed = False
        self.decoded: Optional[np.ndarray] = None

    def load(self) -> None:
        self.loaded = True

    def decode(self, samples: np.ndarray) -> None:
        self.decoded = samples
        if self.fail_decode:
            raise TranscriptionError("failed to run model")

    def segment_count(self) -> int:
        return len(self.segments)

    def segment_start(self, index: int) -> float:
        return self.segments[index].start

    def segment_end(self, index: int) -> float:
        return self.segments[index].end

    def segment_text(self, index: int) -> str:
        if index == self.fail_text_at:
            raise RuntimeError("failed to get segment")
        return self.segments[index].text

    def close(self) -> None:
        self.closed = True


class DecimatingResampler(Resampler):
    """In-process resampler for integer rate ratios, writing 16-bit mono PCM."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def resample(self, path, target_rate):
        self.calls.append((path, target_rate))
        data, rate = sf.read(str(path), dtype="int16", always_2d=True)
        mono = data[:, 0][:: rate // target_rate]
        temp = str(path) + ".tmp.wav"
        sf.write(temp, mono, target_rate, subtype="PCM_16", format="WAV")
        os.replace(temp, path)
        return path


def engine_factory(engine: StubEngine) -> Callable[[str], StubEngine]:
    def build(model_path: str) -> StubEngine:
        engine.model_path = model_path
        return engine

    return build


@pytest.fixture
def input_device() -> InputDevice:
    return InputDevice(
        index=0, name="Fake Mic", max_input_channels=2, default_samplerate=48000.0
    )


@pytest.fixture
def default_input() -> Dict:
    return {
        "index": 3,
        "name": "Fake Mic",
        "max_input_channels": 2,
        "default_samplerate": 48000.0,
    }
