"""Modelos de estadísticas para MessageBuffer.

Separado de message_buffer.py para mantener el buffer pequeño.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BufferStats:
    """Estadísticas del buffer."""
    pushed: int = 0
    popped: int = 0
    evicted: int = 0
    trimmed: int = 0  # descartados al reducir la capacidad
    current_size: int = 0
    capacity: int = 0
