"""clipsplit — batch-export named clips from one video using ffmpeg."""

__version__ = "0.1.0"
