"""Resultado de una lectura del sensor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ReadingStatus(Enum):
    """Resultado de una lectura."""
    OK = "ok"
    NO_CAPTURE = "no_capture"  # modo captura: cola vacía o payload descartado
    NO_DATA = "no_data"  # modo snapshot: nunca llegó un mensaje


@dataclass(frozen=True)
class Reading:
    """Lectura decodificada o marcador de "sin datos".

    Los marcadores no son errores: solo indican que no hay payload.
    """
    status: ReadingStatus
    payload: Any = None
    qos: Optional[int] = None
    topic: Optional[str] = None

    @classmethod
    def ok(cls, payload: Any, qos: int, topic: str) -> "Reading":
        return cls(status=ReadingStatus.OK, payload=payload, qos=qos, topic=topic)

    @classmethod
    def no_capture(cls) -> "Reading":
        return cls(status=ReadingStatus.NO_CAPTURE)

    @classmethod
    def no_data(cls) -> "Reading":
        return cls(status=ReadingStatus.NO_DATA)

    @property
    def has_payload(self) -> bool:
        return self.status is ReadingStatus.OK

    def to_dict(self) -> dict:
        """Formato de readings del host: {payload, qos, topic} o vacío."""
        if not self.has_payload:
            return {}
        return {
            "payload": self.payload,
            "qos": self.qos,
            "topic": self.topic,
        }
