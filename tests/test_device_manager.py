"""Tests for input device negotiation."""

import pytest

from voicesketch.audio.device_manager import DeviceNegotiator, list_input_devices
from voicesketch.audio.formats import SampleFormat
from voicesketch.utils.exceptions import NoInputDeviceError, UnsupportedConfigError

from conftest import FakeBackend


def test_negotiates_first_accepted_format(default_input):
    backend = FakeBackend(default_input, accepted_formats=("int16", "int32"))
    negotiator = DeviceNegotiator(
        backend=backend, channels=1, preferred_formats=["float32", "int32", "int16"]
    )

    stream_config, device = negotiator.negotiate()

    assert stream_config.sample_format is SampleFormat.INT32
    assert stream_config.channel_count == 1
    assert stream_config.sample_rate == 48000
    assert device.index == 3
    assert device.name == "Fake Mic"
    assert backend.checked == ["float32", "int32"]


def test_channels_capped_at_device_maximum(default_input):
    default_input["max_input_channels"] = 1
    negotiator = DeviceNegotiator(
        backend=FakeBackend(default_input), channels=2, preferred_formats=["int16"]
    )

    stream_config, _ = negotiator.negotiate()

    assert stream_config.channel_count == 1


def test_missing_default_device():
    negotiator = DeviceNegotiator(
        backend=FakeBackend(None), preferred_formats=["int16"]
    )

    with pytest.raises(NoInputDeviceError):
        negotiator.negotiate()


def test_device_without_input_channels(default_input):
    default_input["max_input_channels"] = 0
    negotiator = DeviceNegotiator(
        backend=FakeBackend(default_input), preferred_formats=["int16"]
    )

    with pytest.raises(NoInputDeviceError):
        negotiator.negotiate()


def test_device_without_sample_rate(default_input):
    default_input["default_samplerate"] = 0
    negotiator = DeviceNegotiator(
        backend=FakeBackend(default_input), preferred_formats=["int16"]
    )

    with pytest.raises(UnsupportedConfigError):
        negotiator.negotiate()


def test_no_accepted_format(default_input):
    negotiator = DeviceNegotiator(
        backend=FakeBackend(default_input, accepted_formats=()),
        preferred_formats=["float32", "int16"],
    )

    with pytest.raises(UnsupportedConfigError):
        negotiator.negotiate()


def test_list_input_devices_skips_output_only():
    backend = FakeBackend(
        devices=[
            {"name": "Speakers", "max_input_channels": 0, "default_samplerate": 48000.0},
            {"name": "USB Mic", "max_input_channels": 1, "default_samplerate": 44100.0},
        ]
    )

    devices = list_input_devices(backend)

    assert devices == [
        {"index": 1, "name": "USB Mic", "channels": 1, "default_samplerate": 44100.0}
    ]
