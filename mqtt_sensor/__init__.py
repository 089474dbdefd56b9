"""Sensor MQTT de un único topic.

Este paquete proporciona:
- Suscripción a un topic MQTT con reconfiguración en caliente
- Buffer acotado con política drop-oldest y slot del último mensaje
- Lecturas en modo captura (FIFO) y snapshot (último valor)
- Decodificación del payload: raw, json o string

Estructura modular:
- core/: dominio, decodificación, transporte paho y estadísticas
- mqtt/: buffer, generaciones de conexión y singleton
- sensor.py: fachada de lectura
"""

from .core.domain.message import Message
from .core.domain.reading import Reading, ReadingStatus
from .core.domain.sensor_config import SensorConfig, validate_sensor_config
from .errors import (
    BrokerConnectionError,
    ConfigurationError,
    DecodeError,
    NoCaptureToStore,
    SensorClosedError,
    SensorError,
    SubscriptionError,
)
from .sensor import FROM_DATA_MANAGEMENT, MQTTSensor

__all__ = [
    "Message",
    "Reading",
    "ReadingStatus",
    "SensorConfig",
    "validate_sensor_config",
    "MQTTSensor",
    "FROM_DATA_MANAGEMENT",
    "SensorError",
    "ConfigurationError",
    "BrokerConnectionError",
    "SubscriptionError",
    "DecodeError",
    "SensorClosedError",
    "NoCaptureToStore",
]
