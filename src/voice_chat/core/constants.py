"""Closed value sets and storage precision shared by models and schemas."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, get_args

ConnectionStatus = Literal["connecting", "connected", "disconnected", "error"]
MessageType = Literal["user_text", "user_audio", "ai_text", "ai_audio"]

CONNECTION_STATUSES: tuple[str, ...] = get_args(ConnectionStatus)
MESSAGE_TYPES: tuple[str, ...] = get_args(MessageType)

DEFAULT_CONNECTION_STATUS: ConnectionStatus = "connecting"

# numeric(10, 2): 10 significant digits, 2 after the point
DURATION_PRECISION = 10
DURATION_SCALE = 2
MAX_DURATION = 10 ** (DURATION_PRECISION - DURATION_SCALE)

_DURATION_QUANTUM = Decimal(1).scaleb(-DURATION_SCALE)


def quantize_duration(value: float) -> Decimal:
    """Round a duration to its stored two-digit form, halves away from zero."""
    # str() first so 45.67 quantizes from "45.67", not its binary expansion
    return Decimal(str(value)).quantize(_DURATION_QUANTUM, rounding=ROUND_HALF_UP)
