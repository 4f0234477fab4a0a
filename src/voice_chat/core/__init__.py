"""Core utilities for Voice Chat"""

from voice_chat.core.config import settings
from voice_chat.core.logging import configure_logging

__all__ = ["settings", "configure_logging"]
