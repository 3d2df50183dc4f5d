"""FFmpeg audio decoding adapter."""
