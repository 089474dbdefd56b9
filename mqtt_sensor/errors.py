"""Errores del sensor MQTT.

Ningún error de este módulo es fatal: todos dejan el sensor en un estado
utilizable (posiblemente degradado).
"""

from __future__ import annotations

from typing import Optional


class SensorError(Exception):
    """Base de errores del sensor MQTT."""


class ConfigurationError(SensorError):
    """Configuración inválida. Se rechaza antes de cambiar cualquier estado."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class BrokerConnectionError(SensorError):
    """Broker inaccesible o handshake fallido. No se reintenta automáticamente."""


class SubscriptionError(SensorError):
    """La suscripción al topic falló; la conexión se mantiene."""


class DecodeError(SensorError):
    """Payload malformado para el formato declarado."""

    def __init__(self, message_type: str, detail: str):
        super().__init__(f"error parsing {message_type} message: {detail}")
        self.message_type = message_type
        self.detail = detail


class SensorClosedError(SensorError):
    """Operación sobre un sensor ya cerrado."""


class NoCaptureToStore(Exception):
    """Señal del host: no hay nada que capturar en esta lectura.

    No es un fallo. Permite a los pollers periódicos distinguir "sin datos
    todavía" de un error real.
    """

    def __init__(self, message: str = "no capture to store"):
        super().__init__(message)
