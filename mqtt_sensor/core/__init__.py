"""Core module - Piezas del sensor MQTT sin estado compartido.

Estructura:
- domain/      → Modelos: Message, Reading, SensorConfig
- decoding/    → Decodificación de payloads
- transport/   → Cliente paho-mqtt
- monitoring/  → Estadísticas
"""
