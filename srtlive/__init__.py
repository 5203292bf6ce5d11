"""Building blocks for an SRT live streaming server: TS inspection, buffers, playback, config and relay helpers."""

__version__ = "0.1.0"