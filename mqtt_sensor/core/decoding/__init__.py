"""Decoding layer - Payload → valor estructurado."""

from .payload_decoder import decode_payload

__all__ = ["decode_payload"]
