"""Tests for the FFmpeg resampler."""

import shutil

import ffmpeg
import numpy as np
import pytest
import soundfile as sf

from voicesketch.audio.resampler import FFmpegResampler
from voicesketch.utils.exceptions import ExternalToolError, FileOperationError


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "recorded.wav"
    t = np.arange(48000) / 48000.0
    tone = (0.5 * np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16)
    sf.write(str(path), tone, 48000, subtype="PCM_16")
    return path


def _fake_run(rate, subtype="PCM_16"):
    def run(stream, cmd="ffmpeg", quiet=False, **kwargs):
        output = ffmpeg.get_args(stream)[-1]
        sf.write(output, np.zeros(rate, dtype=np.int16), rate, subtype=subtype, format="WAV")
        return b"", b""

    return run


def test_missing_binary_leaves_original_intact(recording):
    before = recording.read_bytes()

    with pytest.raises(ExternalToolError):
        FFmpegResampler(binary="voicesketch-no-such-ffmpeg").resample(recording, 16000)

    assert recording.read_bytes() == before
    assert list(recording.parent.iterdir()) == [recording]


def test_ffmpeg_failure_leaves_original_intact(recording, monkeypatch):
    def failing_run(stream, **kwargs):
        raise ffmpeg.Error("ffmpeg", b"", b"Invalid data found when processing input")

    monkeypatch.setattr(ffmpeg, "run", failing_run)
    before = recording.read_bytes()

    with pytest.raises(ExternalToolError, match="Invalid data"):
        FFmpegResampler().resample(recording, 16000)

    assert recording.read_bytes() == before
    assert list(recording.parent.iterdir()) == [recording]


def test_wrong_output_format_is_rejected(recording, monkeypatch):
    monkeypatch.setattr(ffmpeg, "run", _fake_run(48000))
    before = recording.read_bytes()

    with pytest.raises(ExternalToolError):
        FFmpegResampler().resample(recording, 16000)

    assert recording.read_bytes() == before


def test_output_replaces_original(recording, monkeypatch):
    monkeypatch.setattr(ffmpeg, "run", _fake_run(16000))

    result = FFmpegResampler().resample(recording, 16000)

    info = sf.info(str(result))
    assert result == recording
    assert info.samplerate == 16000
    assert info.subtype == "PCM_16"
    assert info.channels == 1
    assert list(recording.parent.iterdir()) == [recording]


def test_missing_recording(tmp_path):
    with pytest.raises(FileOperationError):
        FFmpegResampler().resample(tmp_path / "absent.wav", 16000)


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="FFmpeg not installed")
def test_real_ffmpeg_resamples_to_16k(tmp_path):
    path = tmp_path / "stereo.wav"
    t = np.arange(48000) / 48000.0
    tone = np.sin(2 * np.pi * 440 * t).astype(np.float32) * 0.5
    sf.write(str(path), np.stack([tone, tone], axis=1), 48000, subtype="FLOAT")

    FFmpegResampler(binary="ffmpeg").resample(path, 16000)

    info = sf.info(str(path))
    assert info.samplerate == 16000
    assert info.subtype == "PCM_16"
    assert info.channels == 1
    assert abs(info.frames - 16000) <= 32
