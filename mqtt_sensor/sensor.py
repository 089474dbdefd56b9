"""Sensor MQTT: un topic, un buffer acotado y dos modos de lectura.

Flujo:
  broker → callback de la generación → MessageBuffer
  → read(capture=True)  → pop()         (FIFO, a lo sumo una entrega)
  → read(capture=False) → peek_latest() (último valor, idempotente)

La decodificación siempre ocurre fuera del lock del buffer.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping, Optional, Union

from .core.decoding.payload_decoder import decode_payload
from .core.domain.message import Message
from .core.domain.reading import Reading, ReadingStatus
from .core.domain.sensor_config import SensorConfig, validate_sensor_config
from .core.monitoring.stats import Stats
from .errors import DecodeError, NoCaptureToStore, SensorClosedError
from .mqtt.connection_manager import ClientFactory, ConnectionManager
from .mqtt.generation import GenerationState
from .mqtt.message_buffer import MessageBuffer

# Clave del host que marca una lectura del data manager (modo captura)
FROM_DATA_MANAGEMENT = "fromDataManagement"


class MQTTSensor:
    """Componente sensor suscrito a un único topic MQTT.

    El buffer y el slot "latest" se conservan entre reconfiguraciones; solo
    se recortan si la nueva capacidad es menor.
    """

    def __init__(
        self,
        name: str = "mqtt-client",
        logger: Optional[logging.Logger] = None,
        client_factory: Optional[ClientFactory] = None,
        connect_timeout: float = 5.0,
        subscribe_timeout: float = 5.0,
        disconnect_grace: float = 0.25,
    ):
        self.name = name
        self._logger = logger or logging.getLogger(__name__)
        self._config: Optional[SensorConfig] = None
        self._buffer = MessageBuffer(capacity=0)
        self._stats = Stats()
        self._stats_lock = threading.Lock()
        self._connection = ConnectionManager(
            self._buffer,
            client_factory=client_factory,
            on_delivered=self._on_delivered,
            connect_timeout=connect_timeout,
            subscribe_timeout=subscribe_timeout,
            disconnect_grace=disconnect_grace,
        )
        self._reconfigure_lock = threading.Lock()
        self._closed = False

    @property
    def config(self) -> Optional[SensorConfig]:
        return self._config

    @property
    def buffer(self) -> MessageBuffer:
        return self._buffer

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def is_closed(self) -> bool:
        return self._closed

    def reconfigure(self, attributes: Union[SensorConfig, Mapping[str, Any]]) -> SensorConfig:
        """Aplica una nueva configuración.

        Raises:
            ConfigurationError: configuración inválida; nada cambia
            BrokerConnectionError: la nueva generación no pudo conectar. La
                configuración ya quedó aplicada y el sensor sigue utilizable.
            SensorClosedError: el sensor ya fue cerrado
        """
        config = validate_sensor_config(attributes)

        with self._reconfigure_lock:
            if self._closed:
                raise SensorClosedError(f"sensor {self.name} is closed")

            self._config = config
            self._buffer.resize(config.queue_length)
            self._logger.info("[SENSOR] Reconfigured mqtt client with %s", config.describe())

            generation = self._connection.start(config)

        # fuera del lock: close() o otra reconfiguración pueden abandonar el connect
        error = self._connection.wait_for_connect(generation)
        if error is not None:
            self._logger.error("[SENSOR] Error initializing mqtt client: %s", error)
            raise error
        return config

    def read(self, capture: bool = False) -> Reading:
        """Lee del buffer en modo captura (pop) o snapshot (peek latest).

        Modo captura: cola vacía o payload malformado → Reading NO_CAPTURE.
        El mensaje malformado se descarta sin reintento.

        Modo snapshot: sin mensajes → Reading NO_DATA; payload malformado →
        DecodeError.
        """
        if capture:
            return self._read_capture()
        return self._read_snapshot()

    def _read_capture(self) -> Reading:
        message = self._buffer.pop()
        if message is None:
            return Reading.no_capture()
        try:
            payload = decode_payload(self._message_type, message.payload)
        except DecodeError as e:
            self._logger.error("[SENSOR] Dropping message from %s: %s", message.topic, e)
            with self._stats_lock:
                self._stats.decode_failed += 1
            return Reading.no_capture()
        with self._stats_lock:
            self._stats.captured += 1
        return Reading.ok(payload, message.qos, message.topic)

    def _read_snapshot(self) -> Reading:
        message = self._buffer.peek_latest()
        if message is None:
            return Reading.no_data()
        try:
            payload = decode_payload(self._message_type, message.payload)
        except DecodeError:
            with self._stats_lock:
                self._stats.decode_failed += 1
            raise
        return Reading.ok(payload, message.qos, message.topic)

    @property
    def _message_type(self) -> str:
        config = self._config
        return config.message_type if config is not None else ""

    def readings(self, extra: Optional[Mapping[str, Any]] = None) -> dict:
        """Lectura en el formato del host.

        Returns:
            {"payload", "qos", "topic"}, o {} si todavía no llegó ningún mensaje

        Raises:
            NoCaptureToStore: lectura del data manager sin nada que capturar
            DecodeError: payload malformado en modo snapshot
        """
        capture = bool(extra) and extra.get(FROM_DATA_MANAGEMENT) is True
        reading = self.read(capture=capture)
        if reading.status is ReadingStatus.NO_CAPTURE:
            raise NoCaptureToStore()
        return reading.to_dict()

    def do_command(self, command: Mapping[str, Any]) -> dict:
        """Extensiones no soportadas."""
        raise NotImplementedError("unimplemented")

    def close(self) -> None:
        """Cierra la conexión. Las lecturas siguen sirviendo lo ya recibido."""
        with self._reconfigure_lock:
            if self._closed:
                return
            self._closed = True
            self._connection.stop()
        self._logger.info("[SENSOR] %s closed. %s", self.name, self.stats_summary())

    def _on_delivered(self, message: Message, evicted: int) -> None:
        with self._stats_lock:
            self._stats.received += 1
            self._stats.dropped += evicted
            self._stats.last_message_at = message.received_at
        self._logger.debug(
            "[SENSOR] Message on %s, queue length: %d",
            message.topic,
            self._buffer.size,
        )

    def stats_summary(self) -> str:
        with self._stats_lock:
            return str(self._stats)

    @property
    def stats(self) -> dict:
        with self._stats_lock:
            stats = self._stats.to_dict()
        stats["buffer"] = self._buffer.get_stats()
        stats["connection"] = self._connection.to_dict()
        return stats

    def health_check(self) -> dict:
        state = self._connection.state
        # paho reconecta solo pero no restaura la suscripción
        connected = self._connection.is_connected
        with self._stats_lock:
            last_message_at = self._stats.last_message_at
            received = self._stats.received
        return {
            "healthy": not self._closed and state is GenerationState.SUBSCRIBED and connected,
            "closed": self._closed,
            "state": state.value,
            "connected": connected,
            "generation": self._connection.generation_count,
            "queue_size": self._buffer.size,
            "messages_received": received,
            "seconds_since_last_message": (time.time() - last_message_at)
                if last_message_at else None,
        }
