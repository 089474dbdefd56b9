"""Buffer acotado de mensajes MQTT.

Cola FIFO con capacidad fija y política drop-oldest, más un slot separado
con el último mensaje recibido. El slot no se vacía con pop(): existe para
que las lecturas "snapshot" no dependan de que la cola tenga elementos.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Optional

from ..core.domain.message import Message
from .buffer_config import BufferStats

logger = logging.getLogger(__name__)


class MessageBuffer:
    """Cola acotada y thread-safe de mensajes.

    Características:
    - Capacidad configurable (q_length)
    - Drop oldest cuando se llena: largo tras push = min(capacidad, largo + 1)
    - Slot "latest" independiente de la cola
    - Un único lock; ninguna operación decodifica ni hace I/O dentro de él

    Capacidad 0: la cola no retiene nada. push() solo actualiza el slot latest
    y el mensaje cuenta como descartado.

    Uso:
        buffer = MessageBuffer(capacity=100)

        # Productor (callback del broker)
        buffer.push(message)

        # Consumidores
        message = buffer.pop()
        latest = buffer.peek_latest()
    """

    def __init__(self, capacity: int = 0):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._queue: deque[Message] = deque()  # límite manejado manualmente
        self._latest: Optional[Message] = None
        self._lock = threading.Lock()
        self._stats = BufferStats(capacity=capacity)

    def push(self, message: Message) -> int:
        """Inserta un mensaje al final de la cola.

        Returns:
            Número de mensajes descartados (0 o 1)
        """
        with self._lock:
            self._latest = message
            self._stats.pushed += 1

            if self._capacity == 0:
                self._stats.evicted += 1
                return 1

            evicted = 0
            if len(self._queue) >= self._capacity:
                self._queue.popleft()
                self._stats.evicted += 1
                evicted = 1
            self._queue.append(message)
            self._stats.current_size = len(self._queue)
            return evicted

    def pop(self) -> Optional[Message]:
        """Saca el mensaje más antiguo, o None si la cola está vacía."""
        with self._lock:
            if not self._queue:
                return None
            message = self._queue.popleft()
            self._stats.popped += 1
            self._stats.current_size = len(self._queue)
            return message

    def peek_latest(self) -> Optional[Message]:
        """Último mensaje recibido, sin modificar la cola. None si nunca llegó nada."""
        with self._lock:
            return self._latest

    def resize(self, capacity: int) -> int:
        """Aplica una nueva capacidad descartando los mensajes más antiguos.

        Returns:
            Número de mensajes descartados
        """
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        with self._lock:
            self._capacity = capacity
            self._stats.capacity = capacity
            trimmed = 0
            while len(self._queue) > capacity:
                self._queue.popleft()
                trimmed += 1
            self._stats.trimmed += trimmed
            self._stats.current_size = len(self._queue)
        if trimmed:
            logger.info("[BUFFER] Capacity reduced to %d, trimmed %d messages", capacity, trimmed)
        return trimmed

    def snapshot(self) -> list[Message]:
        """Copia de los mensajes en cola, del más antiguo al más nuevo."""
        with self._lock:
            return list(self._queue)

    def clear(self) -> int:
        """Vacía la cola y el slot latest.

        Returns:
            Número de mensajes eliminados de la cola
        """
        with self._lock:
            count = len(self._queue)
            self._queue.clear()
            self._latest = None
            self._stats.current_size = 0
            return count

    @property
    def capacity(self) -> int:
        with self._lock:
            return self._capacity

    @property
    def size(self) -> int:
        """Tamaño actual de la cola."""
        with self._lock:
            return len(self._queue)

    def __len__(self) -> int:
        return self.size

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return len(self._queue) == 0

    def get_stats(self) -> dict:
        """Estadísticas del buffer."""
        with self._lock:
            size = len(self._queue)
            return {
                "pushed": self._stats.pushed,
                "popped": self._stats.popped,
                "evicted": self._stats.evicted,
                "trimmed": self._stats.trimmed,
                "current_size": size,
                "capacity": self._capacity,
                "utilization_pct": (size / self._capacity * 100)
                    if self._capacity > 0 else 0,
                "has_latest": self._latest is not None,
            }
