"""Estadísticas del sensor."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Stats:
    """Contadores de mensajes del sensor.

    received: entregados por el broker
    dropped: descartados por la cola (drop-oldest o capacidad 0)
    captured: entregados en modo captura
    decode_failed: payloads que no se pudieron decodificar
    """

    received: int = 0
    dropped: int = 0
    captured: int = 0
    decode_failed: int = 0
    last_message_at: float = 0
    started_at: datetime = field(default_factory=_utcnow)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} dropped={self.dropped} "
            f"captured={self.captured} decode_failed={self.decode_failed}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "received": self.received,
            "dropped": self.dropped,
            "captured": self.captured,
            "decode_failed": self.decode_failed,
            "last_message_at": self.last_message_at,
            "started_at": self.started_at.isoformat(),
        }

