"""Configuración validada del sensor MQTT.

Atributos del host (formato JSON del componente):
{
    "topic": "sensors/room1/temperature",
    "host": "broker.local",
    "port": 1883,
    "qos": 1,
    "q_length": 100,
    "clientid": "room1-sensor",
    "msg_type": "json"
}
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ...errors import ConfigurationError

logger = logging.getLogger(__name__)

# "" y "raw" son equivalentes: el payload se entrega sin tocar
MESSAGE_TYPES = ("", "json", "string", "raw")


class SensorConfig(BaseModel):
    """Snapshot inmutable de la configuración del sensor."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    topic: str
    host: str
    port: int = Field(..., gt=0)
    qos: int = Field(default=0, ge=0, le=2)
    queue_length: int = Field(default=0, ge=0, alias="q_length")
    client_id: str = Field(default="", alias="clientid")
    message_type: str = Field(default="", alias="msg_type")

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, v: str) -> str:
        if not v:
            raise ValueError("topic is required")
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("host is required")
        return v.strip()

    @field_validator("message_type")
    @classmethod
    def validate_message_type(cls, v: str) -> str:
        if v not in MESSAGE_TYPES:
            raise ValueError('message type must be either "", "json", "string", or "raw"')
        return v

    @property
    def broker_url(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    def to_attributes(self) -> dict[str, Any]:
        """Vuelve al formato de atributos del host."""
        return self.model_dump(by_alias=True)

    def describe(self) -> str:
        return (
            f"topic: {self.topic}, host: {self.host}, port: {self.port}, "
            f"qos: {self.qos}, clientID: {self.client_id}, "
            f"msgtype: {self.message_type}, q_length: {self.queue_length}"
        )


def _format_error(exc: ValidationError) -> tuple[str, str]:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "config"
    msg = first.get("msg", str(exc))
    # pydantic antepone "Value error, " a los ValueError de los validators
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    if first.get("type") == "missing":
        msg = f"{field} is required"
    return field, msg


def validate_sensor_config(
    attributes: Union[SensorConfig, Mapping[str, Any]],
) -> SensorConfig:
    """Valida atributos y construye un SensorConfig.

    La validación es atómica: o se obtiene una configuración completa o se
    lanza ConfigurationError y nada cambia.

    Args:
        attributes: SensorConfig ya construido o mapping de atributos del host

    Returns:
        SensorConfig validado

    Raises:
        ConfigurationError: si falta un campo o está fuera de rango
    """
    if isinstance(attributes, SensorConfig):
        return attributes

    if attributes is None:
        raise ConfigurationError("configuration is required")

    try:
        return SensorConfig.model_validate(dict(attributes))
    except ValidationError as e:
        field, msg = _format_error(e)
        logger.warning("[SENSOR_CONFIG] Validation failed: %s (field=%s)", msg, field)
        raise ConfigurationError(msg, field=field) from e
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
