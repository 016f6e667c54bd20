"""Subtitle processing service for training videos.

This service handles:
- Word-level transcription of the source video
- English SRT generation with sentence-aware block breaking
- Batched translation into each requested language with per-language failure isolation
- Upload of every SRT file and live progress reporting
"""

__version__ = "1.0.0"
