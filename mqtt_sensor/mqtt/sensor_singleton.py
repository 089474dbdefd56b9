"""Registro del modelo y gestión del sensor singleton.

create_sensor() es el constructor que usa el host: construye el sensor y
aplica la primera configuración.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from common.config import get_settings

from ..errors import BrokerConnectionError, ConfigurationError
from ..sensor import MQTTSensor

# namespace:repo:modelo
MODEL = "viam-soleng:mqtt:client"


def create_sensor(
    attributes: Mapping[str, Any],
    name: str = "mqtt-client",
    logger: Optional[logging.Logger] = None,
    **kwargs: Any,
) -> MQTTSensor:
    """Construye un sensor y aplica su configuración inicial.

    Un fallo de conexión se reporta en el log pero no impide construir el
    sensor. Una configuración inválida sí.

    Raises:
        ConfigurationError: atributos inválidos
    """
    log = logger or logging.getLogger(__name__)
    sensor = MQTTSensor(name=name, logger=logger, **kwargs)
    try:
        sensor.reconfigure(attributes)
    except ConfigurationError:
        sensor.close()
        raise
    except BrokerConnectionError as e:
        log.error("[SENSOR_REGISTRY] %s created without connection: %s", name, e)
    return sensor


# Singleton
_sensor: Optional[MQTTSensor] = None


def get_sensor() -> Optional[MQTTSensor]:
    """Obtiene el sensor singleton."""
    return _sensor


def start_sensor() -> bool:
    """Inicia el sensor singleton a partir de las variables de entorno.

    Returns:
        True si el sensor quedó conectado
    """
    global _sensor

    if _sensor is not None:
        return _sensor.connection.is_connected

    settings = get_settings()
    _sensor = create_sensor(
        settings.sensor_attributes(),
        connect_timeout=settings.connect_timeout,
        disconnect_grace=settings.disconnect_grace,
    )
    return _sensor.connection.is_connected


def stop_sensor():
    """Detiene el sensor singleton."""
    global _sensor

    if _sensor is not None:
        _sensor.close()
        _sensor = None
