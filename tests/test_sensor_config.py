"""Tests de validación de configuración y settings de entorno."""

import pytest

from common.config import get_settings
from mqtt_sensor.core.domain.sensor_config import SensorConfig, validate_sensor_config
from mqtt_sensor.errors import ConfigurationError


class TestValidConfig:

    def test_host_attributes(self, sensor_attributes):
        config = validate_sensor_config(sensor_attributes)

        assert config.topic == "sensors/room1/temperature"
        assert config.host == "broker.local"
        assert config.port == 1883
        assert config.qos == 1
        assert config.queue_length == 3
        assert config.client_id == "room1-sensor"
        assert config.message_type == "json"
        assert config.broker_url == "tcp://broker.local:1883"

    def test_python_field_names(self):
        config = validate_sensor_config({
            "topic": "a/b",
            "host": "localhost",
            "port": 1883,
            "queue_length": 10,
            "client_id": "",
            "message_type": "string",
        })

        assert config.queue_length == 10
        assert config.message_type == "string"

    def test_defaults(self):
        config = validate_sensor_config({"topic": "a/b", "host": "localhost", "port": 1883})

        assert config.qos == 0
        assert config.queue_length == 0
        assert config.client_id == ""
        assert config.message_type == ""

    @pytest.mark.parametrize("message_type", ["", "json", "string", "raw"])
    def test_message_types(self, sensor_attributes, message_type):
        sensor_attributes["msg_type"] = message_type
        assert validate_sensor_config(sensor_attributes).message_type == message_type

    def test_whitespace_topic_is_not_empty(self, sensor_attributes):
        sensor_attributes["topic"] = "  "
        assert validate_sensor_config(sensor_attributes).topic == "  "

    def test_config_is_immutable(self, sensor_config):
        with pytest.raises(Exception):
            sensor_config.topic = "other"

    def test_passthrough_of_built_config(self, sensor_config):
        assert validate_sensor_config(sensor_config) is sensor_config

    def test_round_trip_to_attributes(self, sensor_attributes):
        config = validate_sensor_config(sensor_attributes)
        assert config.to_attributes() == sensor_attributes


class TestInvalidConfig:

    @pytest.mark.parametrize("field,value,expected", [
        ("topic", "", "topic is required"),
        ("host", "", "host is required"),
        ("port", 0, "port"),
        ("port", -1, "port"),
        ("qos", 3, "qos"),
        ("qos", -1, "qos"),
        ("q_length", -1, "q_length"),
        ("msg_type", "xml", "message type must be either"),
    ])
    def test_rejected(self, sensor_attributes, field, value, expected):
        sensor_attributes[field] = value

        with pytest.raises(ConfigurationError) as exc_info:
            validate_sensor_config(sensor_attributes)

        assert expected in str(exc_info.value) or expected in (exc_info.value.field or "")

    @pytest.mark.parametrize("missing", ["topic", "host", "port"])
    def test_missing_required(self, sensor_attributes, missing):
        del sensor_attributes[missing]

        with pytest.raises(ConfigurationError) as exc_info:
            validate_sensor_config(sensor_attributes)

        assert "required" in str(exc_info.value)

    def test_none(self):
        with pytest.raises(ConfigurationError):
            validate_sensor_config(None)

    def test_model_validate_raises_pydantic_error(self):
        # validate_sensor_config es la frontera que traduce a ConfigurationError
        with pytest.raises(Exception) as exc_info:
            SensorConfig.model_validate({"topic": "", "host": "h", "port": 1})
        assert not isinstance(exc_info.value, ConfigurationError)


class TestSettings:

    def test_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MQTT_SENSOR_ENV_FILE", str(tmp_path / "missing.env"))
        monkeypatch.setenv("MQTT_TOPIC", "plant/line1")
        monkeypatch.setenv("MQTT_BROKER_HOST", "10.0.0.5")
        monkeypatch.setenv("MQTT_BROKER_PORT", "8883")
        monkeypatch.setenv("MQTT_QOS", "2")
        monkeypatch.setenv("MQTT_QUEUE_LENGTH", "50")
        monkeypatch.setenv("MQTT_MSG_TYPE", "string")
        monkeypatch.setenv("MQTT_DISCONNECT_GRACE_MS", "500")

        settings = get_settings()

        assert settings.mqtt_port == 8883
        assert settings.disconnect_grace == 0.5
        config = validate_sensor_config(settings.sensor_attributes())
        assert config.topic == "plant/line1"
        assert config.host == "10.0.0.5"
        assert config.qos == 2
        assert config.queue_length == 50
        assert config.message_type == "string"

    def test_env_file_does_not_override_environment(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("MQTT_TOPIC=from/file\nMQTT_BROKER_HOST=file-host\n")
        monkeypatch.setenv("MQTT_SENSOR_ENV_FILE", str(env_file))
        monkeypatch.delenv("MQTT_TOPIC", raising=False)
        monkeypatch.setenv("MQTT_BROKER_HOST", "env-host")

        try:
            settings = get_settings()
        finally:
            # load_dotenv escribe en os.environ
            monkeypatch.delenv("MQTT_TOPIC", raising=False)

        assert settings.mqtt_topic == "from/file"
        assert settings.mqtt_host == "env-host"
