"""Diagnostics for audio capture.

Logging and troubleshooting suggestions used when an input stream cannot be
opened.
"""

import platform
from typing import Optional

from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)


def log_detailed_error_info(
    error: Exception,
    device_name: Optional[str],
    sample_rate: int,
    channels: int,
    dtype: str,
) -> None:
    """Log detailed error information for debugging.

    Args:
        error: The exception that occurred.
        device_name: Name of the input device, if known.
        sample_rate: The sample rate being used.
        channels: Number of channels being used.
        dtype: Sample format being requested.
    """
    logger.error("=" * 60)
    logger.error("AUDIO ERROR DETAILS")
    logger.error("=" * 60)
    logger.error(f"Error type: {type(error).__name__}")
    logger.error(f"Error message: {error}")
    logger.error(f"Device: {device_name or 'default'}")
    logger.error(f"Sample rate: {sample_rate}Hz")
    logger.error(f"Channels: {channels}")
    logger.error(f"Sample format: {dtype}")
    logger.error(f"Platform: {platform.system()} {platform.release()}")
    logger.error("=" * 60)


def suggest_audio_fixes(error: Exception) -> None:
    """Suggest fixes based on the error type.

    Args:
        error: The exception that occurred.
    """
    error_msg = str(error).lower()

    logger.info("=" * 60)
    logger.info("SUGGESTED FIXES")
    logger.info("=" * 60)

    if "permission" in error_msg or "-9995" in error_msg:
        logger.info("Permission error detected:")
        logger.info("  1. Grant microphone access to your terminal")
        logger.info("  2. Restart the application after granting permissions")

    elif "sample rate" in error_msg or "samplerate" in error_msg:
        logger.info("Sample rate error detected:")
        logger.info("  1. Check your audio device's supported sample rates")
        logger.info("  2. Set a different default rate in your audio settings")

    elif "device" in error_msg or "not found" in error_msg:
        logger.info("Device error detected:")
        logger.info("  1. Check if your microphone is connected")
        logger.info("  2. Pick another input with --list-devices and audio.device")

    else:
        logger.info("General troubleshooting steps:")
        logger.info("  1. Check your audio device connection")
        logger.info("  2. Verify microphone permissions")
        logger.info("  3. Try a different audio device")

    logger.info("=" * 60)
