"""Generación de conexión: un intento connect/subscribe por configuración.

Cada reconfiguración crea una generación nueva con su propio cliente y su
propio callback. Al detenerse, la generación cierra la compuerta de entrega
bajo su lock: después de stop() ningún mensaje suyo llega al buffer.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from ..core.domain.message import Message
from ..core.domain.sensor_config import SensorConfig
from ..core.transport.mqtt_client import MQTTClient
from ..errors import BrokerConnectionError, SubscriptionError
from .message_buffer import MessageBuffer

logger = logging.getLogger(__name__)

DeliveryHook = Callable[[Message, int], None]


class GenerationState(Enum):
    """Estado de una generación."""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"  # conectado, suscripción pendiente o fallida
    SUBSCRIBED = "subscribed"
    FAILED = "failed"
    STOPPED = "stopped"


class Generation:
    """Una época de configuración: cliente, suscripción y callback."""

    def __init__(
        self,
        number: int,
        config: SensorConfig,
        buffer: MessageBuffer,
        client: MQTTClient,
        on_delivered: Optional[DeliveryHook] = None,
        connect_timeout: float = 5.0,
        subscribe_timeout: float = 5.0,
        disconnect_grace: float = 0.25,
    ):
        self.number = number
        self.config = config
        self._buffer = buffer
        self._client = client
        self._on_delivered = on_delivered
        self._connect_timeout = connect_timeout
        self._subscribe_timeout = subscribe_timeout
        self._disconnect_grace = disconnect_grace

        self._lock = threading.Lock()
        self._active = True
        self._state = GenerationState.IDLE
        self._connect_outcome = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.connect_error: Optional[BrokerConnectionError] = None
        self.subscribe_error: Optional[SubscriptionError] = None

    @property
    def state(self) -> GenerationState:
        with self._lock:
            return self._state

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def client(self) -> MQTTClient:
        return self._client

    def start(self) -> None:
        """Lanza connect/subscribe en un hilo propio y retorna de inmediato."""
        with self._lock:
            if self._state is not GenerationState.IDLE:
                raise RuntimeError(f"generation {self.number} already started")
            self._state = GenerationState.CONNECTING
        self._thread = threading.Thread(
            target=self._run,
            name=f"mqtt-generation-{self.number}",
            daemon=True,
        )
        self._thread.start()

    def wait_connected(self, timeout: float) -> Optional[BrokerConnectionError]:
        """Espera el resultado de la fase de conexión.

        Returns:
            El error de conexión, o None si conectó, se detuvo o sigue
            conectando al vencer el timeout
        """
        self._connect_outcome.wait(timeout)
        return self.connect_error

    def stop(self) -> None:
        """Detiene la generación. Idempotente.

        Al retornar, el callback de esta generación ya no inserta en el buffer.
        """
        with self._lock:
            if not self._active:
                return
            self._active = False
            previous = self._state
            self._state = GenerationState.STOPPED

        self._client.disconnect(self._disconnect_grace)
        self._connect_outcome.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(self._disconnect_grace + 1.0)
        logger.info(
            "[MQTT_GEN] Generation %d stopped (was %s)",
            self.number,
            previous.value,
        )

    def _run(self) -> None:
        config = self.config
        try:
            self._client.connect(self._connect_timeout)
        except BrokerConnectionError as e:
            with self._lock:
                if self._active:
                    self._state = GenerationState.FAILED
                    self.connect_error = e
            if self.connect_error is not None:
                logger.error("[MQTT_GEN] Error initializing mqtt client: %s", e)
            self._connect_outcome.set()
            return

        with self._lock:
            if not self._active:
                return
            self._state = GenerationState.CONNECTED
        self._connect_outcome.set()

        try:
            self._client.subscribe(
                config.topic,
                config.qos,
                self._deliver,
                timeout=self._subscribe_timeout,
            )
        except SubscriptionError as e:
            if self.is_active:
                self.subscribe_error = e
                logger.error("[MQTT_GEN] Subscription error: %s", e)
            return

        with self._lock:
            if self._active:
                self._state = GenerationState.SUBSCRIBED

    def _deliver(self, message: Message) -> None:
        """Callback de entrega: un único push atómico al buffer."""
        with self._lock:
            if not self._active:
                return
            evicted = self._buffer.push(message)
        if self._on_delivered is not None:
            self._on_delivered(message, evicted)

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "state": self.state.value,
            "broker": self._client.address,
            "topic": self.config.topic,
            "connected": self._client.is_connected,
            "connect_error": str(self.connect_error) if self.connect_error else None,
            "subscribe_error": str(self.subscribe_error) if self.subscribe_error else None,
        }
