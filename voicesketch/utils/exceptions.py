"""Custom exception definitions for VoiceSketch."""


class VoiceSketchError(Exception):
    """Base exception class for VoiceSketch errors."""

    pass


class ConfigurationError(VoiceSketchError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


class AudioDeviceError(VoiceSketchError):
    """Raised when audio device configuration or operation fails."""

    pass


class NoInputDeviceError(AudioDeviceError):
    """Raised when the host has no default input device."""

    pass


class UnsupportedConfigError(AudioDeviceError):
    """Raised when the device cannot report a usable input configuration."""

    pass


class UnsupportedSampleFormatError(AudioDeviceError):
    """Raised when a stream reports a sample format we cannot capture."""

    pass


class CaptureError(AudioDeviceError):
    """Raised when the input stream cannot be built or started."""

    pass


class FileOperationError(VoiceSketchError):
    """Raised when file operations (create, read, write, replace) fail."""

    pass


class AlreadyFinalizedError(FileOperationError):
    """Raised when finalizing a waveform sink that is not open."""

    pass


class ExternalToolError(FileOperationError):
    """Raised when an external process exits non-zero or is missing."""

    pass


class ASRError(VoiceSketchError):
    """Raised when the speech engine fails."""

    pass


class ModelLoadError(ASRError):
    """Raised when the speech model artifact is missing or malformed."""

    pass


class TranscriptionError(ASRError):
    """Raised when decoding or segment retrieval fails."""

    pass


class ImageGenerationError(VoiceSketchError):
    """Raised when the image service request or download fails."""

    pass
