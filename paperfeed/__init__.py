"""Personalized paper ranking and daily digest composition.

Scores enriched papers against a learned per-user interest vector,
learns that vector from feedback, and composes a bounded, diversity-aware
daily briefing per user.
"""

__version__ = "0.1.0"
