"""Buffer y ciclo de vida de la conexión MQTT.

Estructura modular:
- message_buffer.py: cola acotada drop-oldest + último mensaje
- generation.py: un intento connect/subscribe por configuración
- connection_manager.py: reemplazo de generaciones
- sensor_singleton.py: registro del modelo y singleton
"""

from .connection_manager import ConnectionManager
from .generation import Generation, GenerationState
from .message_buffer import MessageBuffer

__all__ = [
    "ConnectionManager",
    "Generation",
    "GenerationState",
    "MessageBuffer",
]
