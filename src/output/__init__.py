"""Target serialization.

This package writes transformed documents to the target file.
It enforces backpressure against the source and reports progress.
"""
