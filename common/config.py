from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    mqtt_topic: str
    mqtt_host: str
    mqtt_port: int
    mqtt_qos: int
    mqtt_queue_length: int
    mqtt_client_id: str
    mqtt_msg_type: str

    connect_timeout: float
    disconnect_grace: float

    def sensor_attributes(self) -> dict[str, Any]:
        """Atributos del sensor en el formato del host."""
        return {
            "topic": self.mqtt_topic,
            "host": self.mqtt_host,
            "port": self.mqtt_port,
            "qos": self.mqtt_qos,
            "q_length": self.mqtt_queue_length,
            "clientid": self.mqtt_client_id,
            "msg_type": self.mqtt_msg_type,
        }


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("MQTT_SENSOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    # Validation of ranges happens in SensorConfig; here only parsing.
    return Settings(
        mqtt_topic=os.getenv("MQTT_TOPIC", ""),
        mqtt_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_qos=int(os.getenv("MQTT_QOS", "0")),
        mqtt_queue_length=int(os.getenv("MQTT_QUEUE_LENGTH", "100")),
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", ""),
        mqtt_msg_type=os.getenv("MQTT_MSG_TYPE", ""),
        connect_timeout=float(os.getenv("MQTT_CONNECT_TIMEOUT", "5.0")),
        disconnect_grace=int(os.getenv("MQTT_DISCONNECT_GRACE_MS", "250")) / 1000.0,
    )
