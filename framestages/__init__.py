"""Post-processing stages for camera frames: motion detection, negation, geometry and inference result decoding."""

__version__ = "0.1.0"