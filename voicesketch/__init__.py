"""VoiceSketch: speak a prompt, get a picture."""

__version__ = "0.1.0"
