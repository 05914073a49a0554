"""Callback delivery to the requesting service."""

from .callback import send_callback, sign_payload

__all__ = [
    "send_callback",
    "sign_payload",
]
