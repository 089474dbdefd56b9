"""Domain layer - Modelos y configuración."""

from .message import Message
from .reading import Reading, ReadingStatus
from .sensor_config import SensorConfig, validate_sensor_config

__all__ = ["Message", "Reading", "ReadingStatus", "SensorConfig", "validate_sensor_config"]
