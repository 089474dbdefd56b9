"""Modelo de dominio para mensajes recibidos del broker."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Message:
    """Mensaje MQTT recibido.

    Inmutable una vez creado. El buffer guarda referencias, no copias.
    """
    topic: str
    payload: bytes
    qos: int = 0
    received_at: float = field(default_factory=time.time)

    @classmethod
    def from_paho(cls, msg) -> "Message":
        """Construye un Message a partir de un paho.mqtt.client.MQTTMessage."""
        return cls(topic=msg.topic, payload=bytes(msg.payload), qos=int(msg.qos))

    def __repr__(self) -> str:
        return f"Message(topic={self.topic!r}, qos={self.qos}, size={len(self.payload)})"
