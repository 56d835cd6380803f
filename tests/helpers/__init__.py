"""Test helper utilities for JobBoard tests."""

from .builders import make_posting, make_user
from .mail import RecordingMailClient, SentMessage

__all__ = ["RecordingMailClient", "SentMessage", "make_posting", "make_user"]
