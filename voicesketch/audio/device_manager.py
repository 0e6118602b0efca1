"""Device discovery and stream configuration negotiation.

This module finds the default input device and the stream configuration
(sample format, channel count, sample rate) it supports natively.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from voicesketch.audio.formats import SampleFormat, StreamConfig
from voicesketch.config.config_loader import config
from voicesketch.utils.exceptions import (
    AudioDeviceError,
    NoInputDeviceError,
    UnsupportedConfigError,
)
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class InputDevice:
    """Handle on a PortAudio input device."""

    index: int
    name: str
    max_input_channels: int
    default_samplerate: float


def load_backend() -> Any:
    """Import sounddevice, reporting a missing PortAudio as a device error."""
    try:
        import sounddevice
    except OSError as e:
        raise AudioDeviceError(f"PortAudio is not available: {e}") from e
    return sounddevice


class DeviceNegotiator:
    """Negotiates the input stream configuration with the audio backend."""

    def __init__(
        self,
        backend: Any = None,
        device: Optional[int] = None,
        channels: Optional[int] = None,
        preferred_formats: Optional[Sequence[str]] = None,
    ) -> None:
        """Initialize the negotiator.

        Args:
            backend: Object exposing the sounddevice query API. Defaults to
                the sounddevice module.
            device: Device index, or None for the system default input.
            channels: Requested channel count, capped at the device maximum.
            preferred_formats: Sample formats to try, most preferred first.
        """
        self.backend = backend if backend is not None else load_backend()
        self.device = device if device is not None else config.get("audio.device")
        self.channels = channels or config.get("audio.channels", 1)
        formats = preferred_formats or config.get(
            "audio.preferred_formats", [f.value for f in SampleFormat]
        )
        self.preferred_formats = [SampleFormat.parse(f) for f in formats]

    def negotiate(self) -> Tuple[StreamConfig, InputDevice]:
        """Discover the input device and its native stream configuration.

        Returns:
            The stream configuration and the device to open it on.

        Raises:
            NoInputDeviceError: If there is no (default) input device.
            UnsupportedConfigError: If the device reports no usable
                configuration.
        """
        device = self._query_input_device()

        sample_rate = int(device.default_samplerate or 0)
        if sample_rate <= 0:
            raise UnsupportedConfigError(
                f"Device '{device.name}' reports no default sample rate"
            )

        channels = min(self.channels, device.max_input_channels)
        sample_format = self._select_sample_format(device, channels, sample_rate)

        stream_config = StreamConfig(
            sample_format=sample_format,
            channel_count=channels,
            sample_rate=sample_rate,
        )
        logger.info(
            f"Negotiated input: {device.name} - {sample_format.value}, "
            f"{channels}ch, {sample_rate}Hz"
        )
        return stream_config, device

    def _query_input_device(self) -> InputDevice:
        try:
            info = self.backend.query_devices(self.device, kind="input")
        except (self.backend.PortAudioError, ValueError) as e:
            target = "default input" if self.device is None else self.device
            raise NoInputDeviceError(f"No input device ({target}): {e}") from e

        if not info or int(info.get("max_input_channels", 0)) < 1:
            raise NoInputDeviceError("Default device has no input channels")

        fallback_index = self.device if self.device is not None else -1
        device = InputDevice(
            index=int(info.get("index", fallback_index)),
            name=str(info.get("name", "unknown")),
            max_input_channels=int(info["max_input_channels"]),
            default_samplerate=float(info.get("default_samplerate") or 0),
        )
        logger.debug(
            f"Input device {device.index}: {device.name}, "
            f"{device.max_input_channels} input channels, "
            f"{device.default_samplerate:.0f}Hz default"
        )
        return device

    def _select_sample_format(
        self, device: InputDevice, channels: int, sample_rate: int
    ) -> SampleFormat:
        for sample_format in self.preferred_formats:
            try:
                self.backend.check_input_settings(
                    device=device.index,
                    channels=channels,
                    dtype=sample_format.value,
                    samplerate=sample_rate,
                )
            except (self.backend.PortAudioError, ValueError) as e:
                logger.debug(f"Format {sample_format.value} rejected: {e}")
                continue
            return sample_format

        raise UnsupportedConfigError(
            f"Device '{device.name}' accepts none of the sample formats "
            f"{[f.value for f in self.preferred_formats]} at {sample_rate}Hz"
        )


def list_input_devices(backend: Any = None) -> List[dict]:
    """Get the list of available audio input devices.

    Args:
        backend: Object exposing the sounddevice query API.

    Returns:
        List of device information dictionaries.
    """
    backend = backend if backend is not None else load_backend()
    devices = []
    for i, device in enumerate(backend.query_devices()):
        if device["max_input_channels"] > 0:
            devices.append(
                {
                    "index": i,
                    "name": device["name"],
                    "channels": device["max_input_channels"],
                    "default_samplerate": device["default_samplerate"],
                }
            )
    return devices
