"""Fixtures compartidas: broker falso y helpers de espera."""

import threading
import time
from typing import Callable, List, Optional

import pytest

from mqtt_sensor.core.domain.message import Message
from mqtt_sensor.core.domain.sensor_config import SensorConfig
from mqtt_sensor.errors import BrokerConnectionError, SubscriptionError


class FakeBrokerClient:
    """Doble de MQTTClient: misma interfaz, sin red.

    A diferencia del cliente real, disconnect() NO borra el callback, para
    poder comprobar que la generación detenida rechaza entregas tardías.
    """

    def __init__(
        self,
        config: SensorConfig,
        connect_error: Optional[BrokerConnectionError] = None,
        subscribe_error: Optional[SubscriptionError] = None,
        block_connect: bool = False,
    ):
        self.config = config
        self.broker_host = config.host
        self.broker_port = config.port
        self.client_id = config.client_id
        self.connect_error = connect_error
        self.subscribe_error = subscribe_error

        self._release = threading.Event()
        if not block_connect:
            self._release.set()
        self.connect_started = threading.Event()
        self.aborted = False
        self.connected = False
        self.callback = None
        self.subscriptions: List[tuple] = []
        self.disconnect_calls = 0

    @property
    def address(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    @property
    def is_connected(self) -> bool:
        return self.connected

    def release(self) -> None:
        """Deja continuar un connect() bloqueado."""
        self._release.set()

    def connect(self, timeout: float = 5.0) -> None:
        self.connect_started.set()
        if not self._release.wait(timeout):
            raise BrokerConnectionError(f"connection to {self.address} timed out")
        if self.aborted:
            raise BrokerConnectionError(f"connection to {self.address} aborted")
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def subscribe(self, topic, qos, callback, timeout=5.0) -> None:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.subscriptions.append((topic, qos))
        self.callback = callback

    def disconnect(self, grace: float = 0.25) -> None:
        self.disconnect_calls += 1
        self.aborted = True
        self.connected = False
        self._release.set()

    def deliver(self, payload: bytes, topic: Optional[str] = None, qos: Optional[int] = None) -> bool:
        """Simula la entrega de un mensaje desde el hilo de red."""
        if self.callback is None:
            return False
        self.callback(Message(
            topic=topic or self.config.topic,
            payload=payload,
            qos=self.config.qos if qos is None else qos,
        ))
        return True


class FakeBroker:
    """Fábrica de FakeBrokerClient; registra cada cliente creado."""

    def __init__(self):
        self.clients: List[FakeBrokerClient] = []
        self.connect_error: Optional[BrokerConnectionError] = None
        self.subscribe_error: Optional[SubscriptionError] = None
        self.block_connect = False

    def factory(self, config: SensorConfig) -> FakeBrokerClient:
        client = FakeBrokerClient(
            config,
            connect_error=self.connect_error,
            subscribe_error=self.subscribe_error,
            block_connect=self.block_connect,
        )
        self.clients.append(client)
        return client

    @property
    def latest(self) -> FakeBrokerClient:
        return self.clients[-1]


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def broker() -> FakeBroker:
    """Broker falso para ConnectionManager / MQTTSensor."""
    return FakeBroker()


@pytest.fixture
def wait_for():
    """Espera activa acotada sobre un predicado."""
    return _wait_for


@pytest.fixture
def sensor_attributes() -> dict:
    """Atributos válidos en el formato del host."""
    return {
        "topic": "sensors/room1/temperature",
        "host": "broker.local",
        "port": 1883,
        "qos": 1,
        "q_length": 3,
        "clientid": "room1-sensor",
        "msg_type": "json",
    }


@pytest.fixture
def sensor_config(sensor_attributes) -> SensorConfig:
    return SensorConfig.model_validate(sensor_attributes)
