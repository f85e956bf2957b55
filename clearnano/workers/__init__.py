"""
Workers Module - Async Thread Management
========================================
Contains the QThread worker for non-blocking batch processing.

Components:
- CleanWorker: Sequential watermark removal with progress tracking
"""

from .clean_worker import CleanWorker, CleanConfig

__all__ = [
    "CleanWorker",
    "CleanConfig",
]
