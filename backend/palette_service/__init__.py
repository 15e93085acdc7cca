"""
Palette Service

Extracts a ranked, deduplicated color palette from an uploaded image using
either a remote scoring backend or a local pixel-clustering quantizer.
"""

__version__ = "1.0.0"
