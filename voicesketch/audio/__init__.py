"""Audio capture and processing modules.

This package provides the capture side of the pipeline:
- formats: Sample formats, stream configuration and per-format converters
- device_manager: Default input discovery and format negotiation
- waveform_writer: Thread-safe incremental WAV sink
- recorder: Live capture session feeding the sink
- resampler: FFmpeg resampling to the speech engine's rate
- diagnostics: Logging and troubleshooting
"""

from voicesketch.audio.device_manager import DeviceNegotiator, InputDevice
from voicesketch.audio.formats import SampleFormat, StreamConfig, WaveformSpec
from voicesketch.audio.recorder import CaptureSession, CaptureStats
from voicesketch.audio.resampler import FFmpegResampler, Resampler
from voicesketch.audio.waveform_writer import SinkState, WaveformSink

__all__ = [
    "CaptureSession",
    "CaptureStats",
    "DeviceNegotiator",
    "FFmpegResampler",
    "InputDevice",
    "Resampler",
    "SampleFormat",
    "SinkState",
    "StreamConfig",
    "WaveformSink",
    "WaveformSpec",
]
