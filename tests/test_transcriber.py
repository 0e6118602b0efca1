"""Tests for transcription and prompt assembly."""

import sys
from types import SimpleNamespace

import numpy as np
import pytest
import soundfile as sf

from voicesketch.asr.engine import FasterWhisperEngine
from voicesketch.asr.transcriber import Segment, Transcriber, decode_pcm16, load_pcm16
from voicesketch.text.prompt import assemble_prompt
from voicesketch.utils.exceptions import (
    FileOperationError,
    ModelLoadError,
    TranscriptionError,
)

from conftest import StubEngine, engine_factory


@pytest.fixture
def speech(tmp_path):
    path = tmp_path / "speech.wav"
    samples = np.array([0, 16384, -16384, 32767, -32768] * 100, dtype=np.int16)
    sf.write(str(path), samples, 16000, subtype="PCM_16")
    return path, samples


def test_decode_pcm16_discards_trailing_partial_sample():
    raw = np.array([0, 16384, -32768], dtype=np.int16).tobytes() + b"\x01"

    samples = decode_pcm16(raw)

    assert samples.dtype == np.float32
    assert samples.tolist() == [0.0, 0.5, -1.0]


def test_decode_pcm16_empty():
    assert decode_pcm16(b"\x7f").size == 0


def test_load_pcm16_normalizes_samples(speech):
    path, samples = speech

    loaded = load_pcm16(path, expected_rate=16000)

    np.testing.assert_allclose(loaded, samples.astype(np.float32) / 32768.0)


def test_load_pcm16_rejects_other_encodings(tmp_path):
    path = tmp_path / "float.wav"
    sf.write(str(path), np.zeros(160, dtype=np.float32), 16000, subtype="FLOAT")

    with pytest.raises(TranscriptionError):
        load_pcm16(path)


def test_load_pcm16_rejects_wrong_rate(speech):
    path, _ = speech

    with pytest.raises(TranscriptionError):
        load_pcm16(path, expected_rate=48000)


def test_load_pcm16_missing_file(tmp_path):
    with pytest.raises(FileOperationError):
        load_pcm16(tmp_path / "absent.wav")


def test_segments_returned_in_time_order(speech):
    path, samples = speech
    engine = StubEngine(
        [Segment(1.0, 2.0, "b"), Segment(2.0, 3.0, "c"), Segment(0.0, 1.0, "a")]
    )
    transcriber = Transcriber(engine_factory(engine), expected_sample_rate=16000)

    segments = transcriber.transcribe("model-dir", path)

    assert [s.text for s in segments] == ["a", "b", "c"]
    assert assemble_prompt(segments) == "abc"
    assert engine.model_path == "model-dir"
    assert engine.loaded and engine.closed
    assert len(engine.decoded) == len(samples)


def test_segment_retrieval_failure(speech):
    path, _ = speech
    engine = StubEngine([Segment(0.0, 1.0, "a"), Segment(1.0, 2.0, "b")], fail_text_at=1)

    with pytest.raises(TranscriptionError):
        Transcriber(engine_factory(engine), 16000).transcribe("model-dir", path)

    assert engine.closed


def test_decode_failure_releases_engine(speech):
    path, _ = speech
    engine = StubEngine([], fail_decode=True)

    with pytest.raises(TranscriptionError):
        Transcriber(engine_factory(engine), 16000).transcribe("model-dir", path)

    assert engine.closed


def test_segment_ending_before_start_rejected(speech):
    path, _ = speech
    engine = StubEngine([Segment(2.0, 1.0, "x")])

    with pytest.raises(TranscriptionError):
        Transcriber(engine_factory(engine), 16000).transcribe("model-dir", path)


def test_empty_transcript(speech):
    path, _ = speech
    segments = Transcriber(engine_factory(StubEngine([])), 16000).transcribe(
        "model-dir", path
    )

    assert segments == []
    assert assemble_prompt(segments) == ""


def test_missing_model_fails_to_load(tmp_path, speech):
    path, _ = speech
    transcriber = Transcriber(expected_sample_rate=16000)

    with pytest.raises(ModelLoadError):
        transcriber.transcribe(tmp_path / "no-such-model", path)


def test_unavailable_engine_library_is_a_load_error(tmp_path, monkeypatch):
    monkeypatch.setitem(sys.modules, "faster_whisper", None)
    engine = FasterWhisperEngine(str(tmp_path), device="cpu", compute_type="int8")

    with pytest.raises(ModelLoadError):
        engine.load()

    assert engine.model is None


def test_faster_whisper_decode_translates_greedily(tmp_path):
    calls = {}

    class FakeModel:
        def transcribe(self, samples, **kwargs):
            calls.update(kwargs)
            segments = iter([SimpleNamespace(start=0.0, end=1.5, text=" a cat")])
            return segments, SimpleNamespace(language="fr")

    engine = FasterWhisperEngine(str(tmp_path), device="cpu", compute_type="int8")
    engine.model = FakeModel()

    engine.decode(np.zeros(16000, dtype=np.float32))

    assert calls["task"] == "translate"
    assert calls["beam_size"] == 1
    assert calls["temperature"] == 0.0
    assert engine.segment_count() == 1
    assert engine.segment_start(0) == 0.0
    assert engine.segment_end(0) == 1.5
    assert engine.segment_text(0) == " a cat"

    engine.close()
    assert engine.model is None
    assert engine.segment_count() == 0


def test_prompt_separator():
    segments = [Segment(0.0, 1.0, "a cat"), Segment(1.0, 2.0, "on a hat")]

    assert assemble_prompt(segments, separator=" ") == "a cat on a hat"
