"""Transport layer - Recepción MQTT."""

from .mqtt_client import MQTTClient

__all__ = ["MQTTClient"]
