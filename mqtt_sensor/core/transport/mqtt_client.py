"""Cliente MQTT para un único topic.

Envoltorio fino sobre paho-mqtt: connect / subscribe / disconnect y
delegación de cada mensaje recibido a un callback. El protocolo (framing,
QoS, keepalive) queda en manos de paho.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from ..domain.message import Message
from ...errors import BrokerConnectionError, SubscriptionError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Message], None]


def default_paho_factory(client_id: str) -> mqtt.Client:
    """Crea el cliente paho con la API de callbacks v2."""
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
    )


def _is_failure(reason_code, threshold: int = 1) -> bool:
    # paho entrega ReasonCode; los enteros son códigos MQTT 3.1.1 crudos
    is_failure = getattr(reason_code, "is_failure", None)
    if is_failure is not None:
        return bool(is_failure)
    return int(reason_code) >= threshold


class MQTTClient:
    """Cliente MQTT ligero.

    Responsabilidades:
    - Conexión/desconexión al broker (tiempo acotado)
    - Suscripción a un topic
    - Delegación de mensajes al callback registrado

    connect() puede abandonarse desde otro hilo con disconnect().
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        client_id: str = "",
        keepalive: int = 60,
        paho_factory: Optional[Callable[[str], mqtt.Client]] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.keepalive = keepalive
        self._paho_factory = paho_factory or default_paho_factory

        self._client: Optional[mqtt.Client] = None
        self._message_callback: Optional[MessageCallback] = None

        self._connected = threading.Event()
        self._connect_done = threading.Event()
        self._connect_error: Optional[BrokerConnectionError] = None
        self._aborted = False

        self._subscribe_done = threading.Event()
        self._subscribe_error: Optional[SubscriptionError] = None

        self._disconnected = threading.Event()

    @property
    def address(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def connect(self, timeout: float = 5.0) -> None:
        """Conecta al broker y espera el CONNACK como máximo `timeout` segundos.

        Raises:
            BrokerConnectionError: broker inaccesible, conexión rechazada,
                timeout o intento abandonado
        """
        self._client = self._paho_factory(self.client_id)
        client = self._client
        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message

        logger.info("[MQTT] Connecting to %s (client_id=%r)", self.address, self.client_id)
        try:
            client.connect_async(self.broker_host, self.broker_port, keepalive=self.keepalive)
            client.loop_start()
        except (OSError, ValueError) as e:
            self._stop_loop()
            raise BrokerConnectionError(f"cannot connect to {self.address}: {e}") from e

        if not self._connect_done.wait(timeout):
            self._stop_loop()
            raise BrokerConnectionError(f"connection to {self.address} timed out after {timeout}s")

        if self._aborted:
            self._stop_loop()
            raise BrokerConnectionError(f"connection to {self.address} aborted")

        if self._connect_error is not None:
            self._stop_loop()
            raise self._connect_error

    def subscribe(
        self,
        topic: str,
        qos: int,
        callback: MessageCallback,
        timeout: float = 5.0,
    ) -> None:
        """Suscribe al topic y registra el callback de entrega.

        Raises:
            SubscriptionError: cliente no conectado, rechazo del broker o timeout
        """
        if self._client is None:
            raise SubscriptionError("client is not connected")

        self._subscribe_done.clear()
        self._subscribe_error = None
        if self._aborted:
            raise SubscriptionError(f"subscription to {topic!r} aborted")
        self._message_callback = callback

        result, _mid = self._client.subscribe(topic, qos=qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise SubscriptionError(
                f"subscription to {topic!r} failed: {mqtt.error_string(result)}"
            )

        if not self._subscribe_done.wait(timeout):
            raise SubscriptionError(f"subscription to {topic!r} timed out after {timeout}s")

        if self._aborted:
            raise SubscriptionError(f"subscription to {topic!r} aborted")

        if self._subscribe_error is not None:
            raise self._subscribe_error

        logger.info("[MQTT] Subscribed to %s (qos=%d)", topic, qos)

    def disconnect(self, grace: float = 0.25) -> None:
        """Desconecta del broker esperando como máximo `grace` segundos.

        Abandona un connect() en curso. Seguro si nunca se conectó. Al
        retornar, paho ya no invoca el callback de mensajes.
        """
        self._message_callback = None
        self._aborted = True
        self._connect_done.set()
        self._subscribe_done.set()

        client = self._client
        if client is None:
            return

        if self._connected.is_set():
            try:
                client.disconnect()
                self._disconnected.wait(grace)
            except (OSError, ValueError) as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._stop_loop()
        self._connected.clear()

    def _stop_loop(self) -> None:
        if self._client is None:
            return
        try:
            self._client.loop_stop()
        except (OSError, RuntimeError) as e:
            logger.warning("[MQTT] Error stopping network loop: %s", e)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if _is_failure(reason_code):
            self._connected.clear()
            self._connect_error = BrokerConnectionError(
                f"connection to {self.address} refused: {reason_code}"
            )
            logger.error("[MQTT] Connection failed: rc=%s", reason_code)
        else:
            self._connected.set()
            self._disconnected.clear()
            logger.info("[MQTT] Connected to broker %s", self.address)
        self._connect_done.set()

    def _on_connect_fail(self, client, userdata):
        """Callback de fallo de red durante connect."""
        self._connect_error = BrokerConnectionError(f"broker {self.address} unreachable")
        logger.error("[MQTT] Broker %s unreachable", self.address)
        self._connect_done.set()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected.clear()
        self._disconnected.set()
        if _is_failure(reason_code):
            logger.warning("[MQTT] Disconnected unexpectedly (rc=%s)", reason_code)
        else:
            logger.info("[MQTT] Disconnected from %s", self.address)

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties=None):
        """Callback de SUBACK."""
        failed = [rc for rc in reason_code_list if _is_failure(rc, threshold=0x80)]
        if failed:
            self._subscribe_error = SubscriptionError(f"subscription refused by broker: {failed[0]}")
        self._subscribe_done.set()

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al callback registrado."""
        callback = self._message_callback
        if callback is None:
            return
        try:
            callback(Message.from_paho(msg))
        except Exception as e:
            logger.exception("[MQTT] Message callback error: %s (topic=%s)", e, msg.topic)

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()
