"""Decodificación de payloads MQTT según el formato configurado."""

from __future__ import annotations

import json
from typing import Any

from ...errors import DecodeError

JSON = "json"
STRING = "string"
RAW = "raw"


def decode_payload(message_type: str, raw: bytes) -> Any:
    """Decodifica un payload según su formato declarado.

    - "json": parseo estructurado; si falla lanza DecodeError, sin resultado parcial.
    - "string": el payload como texto, sin validar encoding.
    - "", "raw" o cualquier otro: los bytes sin modificar.

    Función pura: segura desde cualquier hilo sin sincronización.
    """
    if message_type == JSON:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(JSON, str(e)) from e
    if message_type == STRING:
        return bytes(raw).decode("utf-8", errors="replace")
    return raw
