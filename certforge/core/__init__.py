"""Codec, version resolution and the certification flow engine."""
