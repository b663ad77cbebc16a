"""Batch-convert images (and optionally videos) to WebP or AVIF."""

__version__ = "1.0.0"
