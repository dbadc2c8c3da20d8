"""Exceptions for Motion Blinds gateway communication."""

from __future__ import annotations


class MotionError(Exception):
    """Base Motion Blinds exception."""


class MotionAuthenticationError(MotionError):
    """Motion Blinds authentication exception (unusable gateway key)."""


class MotionCommandError(MotionError):
    """Motion Blinds command exception (rejected request)."""


class MotionConnectionError(MotionError):
    """Motion Blinds connection exception (socket not bound or lost)."""


class MotionRequestTimeoutError(MotionError):
    """No matching response arrived before the request timeout."""


class MotionParseError(MotionError):
    """Inbound datagram could not be decoded."""


class MotionMovementTimeoutError(MotionError):
    """A tracked movement was never confirmed before its deadline."""
