"""Configuration validation schemas using Pydantic."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_SAMPLE_FORMATS = ("float32", "int16", "int32", "int8")
IMAGE_SIZES = ("256x256", "512x512", "1024x1024")


class AudioConfig(BaseModel):
    """Audio capture configuration validation."""

    device: Optional[int] = Field(default=None, description="Audio device index")
    channels: int = Field(default=1, description="Requested input channels")
    record_duration: float = Field(
        default=5.0, description="Capture duration in seconds"
    )
    output_path: str = Field(
        default="recorded.wav", description="Where the recording is written"
    )
    preferred_formats: List[str] = Field(
        default_factory=lambda: list(SUPPORTED_SAMPLE_FORMATS),
        description="Sample formats to negotiate, in order of preference",
    )

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Channels must be a positive integer")
        return v

    @field_validator("record_duration")
    @classmethod
    def validate_duration(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Record duration must be positive")
        if v > 3600:  # 1 hour max
            raise ValueError("Record duration cannot exceed 1 hour")
        return v

    @field_validator("preferred_formats")
    @classmethod
    def validate_formats(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one preferred sample format is required")
        for fmt in v:
            if fmt not in SUPPORTED_SAMPLE_FORMATS:
                raise ValueError(
                    f"Sample format must be one of: {SUPPORTED_SAMPLE_FORMATS}"
                )
        return v


class ResampleConfig(BaseModel):
    """Resampling configuration validation."""

    target_rate: int = Field(default=16000, description="Speech engine sample rate")
    ffmpeg_binary: str = Field(default="ffmpeg", description="FFmpeg executable")

    @field_validator("target_rate")
    @classmethod
    def validate_target_rate(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Target rate must be positive")
        return v


class ASRConfig(BaseModel):
    """ASR (Automatic Speech Recognition) configuration validation."""

    model_path: Optional[str] = Field(
        default=None, description="Local faster-whisper model directory"
    )
    device: str = Field(default="cpu", description="Inference device")
    compute_type: str = Field(default="int8", description="CTranslate2 compute type")
    language: Optional[str] = Field(
        default=None, description="Source language, None to auto-detect"
    )

    model_config = {"protected_namespaces": ()}

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        valid_devices = ("cpu", "cuda", "auto")
        if v not in valid_devices:
            raise ValueError(f"ASR device must be one of: {valid_devices}")
        return v


class PromptConfig(BaseModel):
    """Prompt assembly configuration validation."""

    separator: str = Field(default="", description="Text placed between segments")


class ImageConfig(BaseModel):
    """Image generation configuration validation."""

    enabled: bool = Field(default=False, description="Send the prompt for an image")
    size: str = Field(default="256x256", description="Requested image size")
    output_dir: str = Field(default="data", description="Where images are saved")
    model: Optional[str] = Field(default=None, description="Image model override")
    user: str = Field(default="voicesketch", description="End-user tag")
    timeout: float = Field(default=60.0, description="Download timeout in seconds")

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: str) -> str:
        if v not in IMAGE_SIZES:
            raise ValueError(f"Image size must be one of: {IMAGE_SIZES}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration validation."""

    level: str = Field(default="INFO", description="Logging level")
    directory: Optional[str] = Field(
        default="logs", description="Log file directory, None for console only"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


class VoiceSketchConfig(BaseModel):
    """Main VoiceSketch configuration validation."""

    app: Dict[str, Any] = Field(default_factory=dict)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    resample: ResampleConfig = Field(default_factory=ResampleConfig)
    asr: ASRConfig = Field(default_factory=ASRConfig)
    prompt: PromptConfig = Field(default_factory=PromptConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "extra": "allow",
        "validate_assignment": True,
    }


def validate_config(config_dict: Dict[str, Any]) -> VoiceSketchConfig:
    """Validate configuration dictionary using Pydantic schemas.

    Args:
        config_dict: Configuration dictionary to validate

    Returns:
        Validated VoiceSketchConfig instance

    Raises:
        ValueError: If configuration validation fails
    """
    try:
        return VoiceSketchConfig(**config_dict)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
