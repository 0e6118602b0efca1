"""Main entry point for VoiceSketch."""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from voicesketch.audio.device_manager import list_input_devices
from voicesketch.audio.recorder import check_duration
from voicesketch.config.config_loader import config
from voicesketch.imaging.generator import OpenAIImageGenerator
from voicesketch.pipeline import Pipeline
from voicesketch.utils.exceptions import VoiceSketchError
from voicesketch.utils.logger import setup_logger

logger = setup_logger(__name__)

# Set by SIGINT/SIGTERM to end the capture early
cancel_event = threading.Event()


def signal_handler(sig, frame):
    """Handle interrupt signals gracefully."""
    logger.info("Received interrupt signal, stopping capture...")
    cancel_event.set()


def duration_arg(value: str) -> float:
    """argparse type for capture lengths."""
    try:
        return check_duration(float(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicesketch",
        description="Record a spoken prompt, transcribe it and draw it.",
    )
    parser.add_argument(
        "-m", "--model", help="Local faster-whisper model directory"
    )
    parser.add_argument(
        "--record-duration",
        type=duration_arg,
        help="Seconds to record (default: audio.record_duration)",
    )
    parser.add_argument(
        "-o", "--output", help="Recording path (default: audio.output_path)"
    )
    parser.add_argument(
        "--list-devices", action="store_true", help="List input devices and exit"
    )
    parser.add_argument(
        "--generate-image",
        action="store_true",
        help="Send the prompt to the image service (billed per image)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run VoiceSketch.

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_devices:
        try:
            devices = list_input_devices()
        except VoiceSketchError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        for device in devices:
            print(
                f"{device['index']}: {device['name']} "
                f"({device['channels']}ch, {device['default_samplerate']:.0f}Hz)"
            )
        return 0

    model_path = args.model or config.get("asr.model_path")
    if not model_path:
        parser.error("Must provide a model. use --help for details.")

    duration = args.record_duration
    if duration is None:
        duration = config.get("audio.record_duration", 5.0)
    output_path = args.output or config.get("audio.output_path", "recorded.wav")

    image_generator = None
    if args.generate_image or config.get("image.enabled", False):
        image_generator = OpenAIImageGenerator()

    # Signals only end the capture; once it is over they behave as usual
    previous_handlers = {
        sig: signal.signal(sig, signal_handler)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }

    def restore_signal_handlers():
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    cancel_event.clear()

    print(
        f"Recording... What should I draw? - "
        f"You have {duration:g} seconds to answer."
    )
    try:
        result = Pipeline(image_generator=image_generator).run(
            output_path,
            duration,
            model_path,
            cancel=cancel_event,
            on_capture_end=restore_signal_handlers,
        )
    except VoiceSketchError as e:
        logger.error(f"Fatal error: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        print("interrupted", file=sys.stderr)
        return 130
    finally:
        restore_signal_handlers()

    print(f"Recording {result.recording_path} complete!")
    for segment in result.segments:
        print(f"[{segment.start:.2f} - {segment.end:.2f}]: {segment.text}")
    print(f"\nprompt: {result.prompt}")
    for path in result.image_paths:
        print(f"Image file path: {path}")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
