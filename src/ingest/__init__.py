"""Source decoding.

This package reads source files in chunks and decodes them incrementally.
It turns JSON and CSV bytes into ordered document and row events.
"""
