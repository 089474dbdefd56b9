"""Ciclo de vida de la conexión MQTT.

Flujo por generación:
  start(config) → Generation (CONNECTING)
  → connect OK → subscribe(topic, qos, buffer.push) → SUBSCRIBED
  → stop() → disconnect con gracia acotada → STOPPED

Sin reintentos automáticos: un fallo de conexión deja la generación en
FAILED hasta la próxima reconfiguración.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional, Union

from ..core.domain.sensor_config import SensorConfig, validate_sensor_config
from ..core.transport.mqtt_client import MQTTClient
from ..errors import BrokerConnectionError
from .generation import DeliveryHook, Generation, GenerationState
from .message_buffer import MessageBuffer

logger = logging.getLogger(__name__)

ClientFactory = Callable[[SensorConfig], MQTTClient]


def default_client_factory(config: SensorConfig) -> MQTTClient:
    return MQTTClient(
        broker_host=config.host,
        broker_port=config.port,
        client_id=config.client_id,
    )


class ConnectionManager:
    """Dueño exclusivo del cliente MQTT.

    Responsabilidades:
    - Crear una generación por configuración
    - Detener la generación anterior antes de iniciar la nueva
    - Reportar el resultado de la fase de conexión sin bloquear indefinidamente

    Nunca toca el contenido del buffer; solo le entrega mensajes.
    """

    def __init__(
        self,
        buffer: MessageBuffer,
        client_factory: Optional[ClientFactory] = None,
        on_delivered: Optional[DeliveryHook] = None,
        connect_timeout: float = 5.0,
        subscribe_timeout: float = 5.0,
        disconnect_grace: float = 0.25,
    ):
        self._buffer = buffer
        self._client_factory = client_factory or default_client_factory
        self._on_delivered = on_delivered
        self.connect_timeout = connect_timeout
        self.subscribe_timeout = subscribe_timeout
        self.disconnect_grace = disconnect_grace

        self._lock = threading.RLock()
        self._current: Optional[Generation] = None
        self._generation_count = 0

    @property
    def current(self) -> Optional[Generation]:
        with self._lock:
            return self._current

    @property
    def generation_count(self) -> int:
        with self._lock:
            return self._generation_count

    @property
    def state(self) -> GenerationState:
        generation = self.current
        if generation is None:
            return GenerationState.IDLE
        return generation.state

    @property
    def is_connected(self) -> bool:
        generation = self.current
        return generation is not None and generation.client.is_connected

    def start(self, config: SensorConfig) -> Generation:
        """Inicia una generación nueva. Detiene la actual si existe."""
        with self._lock:
            self._stop_locked()
            self._generation_count += 1
            generation = Generation(
                number=self._generation_count,
                config=config,
                buffer=self._buffer,
                client=self._client_factory(config),
                on_delivered=self._on_delivered,
                connect_timeout=self.connect_timeout,
                subscribe_timeout=self.subscribe_timeout,
                disconnect_grace=self.disconnect_grace,
            )
            self._current = generation
            generation.start()
            logger.info(
                "[MQTT_MANAGER] Generation %d started for %s (topic=%s)",
                generation.number,
                config.broker_url,
                config.topic,
            )
            return generation

    def stop(self) -> None:
        """Detiene la generación actual. No-op si no hay ninguna."""
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        generation = self._current
        self._current = None
        if generation is not None:
            generation.stop()

    def reconfigure(
        self,
        config: Union[SensorConfig, Mapping[str, Any]],
    ) -> Optional[BrokerConnectionError]:
        """Reemplaza la conexión con una nueva configuración.

        La validación ocurre antes de tocar la generación actual: si falla,
        se lanza ConfigurationError y la generación actual sigue activa.

        Returns:
            El error de la fase de conexión de la nueva generación, o None si
            conectó (o sigue conectando al vencer connect_timeout)
        """
        config = validate_sensor_config(config)
        return self.wait_for_connect(self.start(config))

    def wait_for_connect(self, generation: Generation) -> Optional[BrokerConnectionError]:
        """Espera acotada al resultado de la fase de conexión de `generation`.

        No toma el lock del manager: un stop() o start() concurrente abandona
        el intento y despierta esta espera con None.
        """
        # margen para el arranque del hilo de la generación
        error = generation.wait_connected(self.connect_timeout + 0.5)
        if error is None and generation.state is GenerationState.CONNECTING:
            logger.warning(
                "[MQTT_MANAGER] Generation %d still connecting to %s",
                generation.number,
                generation.config.broker_url,
            )
        return error

    def to_dict(self) -> dict:
        generation = self.current
        return {
            "generations": self.generation_count,
            "current": generation.to_dict() if generation is not None else None,
        }
