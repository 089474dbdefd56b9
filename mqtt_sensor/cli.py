"""CLI: inicia un sensor desde variables de entorno e imprime sus lecturas."""

from __future__ import annotations

import argparse
import base64
import json
import logging
import time

from .errors import ConfigurationError, DecodeError
from .mqtt.sensor_singleton import get_sensor, start_sensor, stop_sensor

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="MQTT topic sensor (one topic, bounded queue)")
    p.add_argument("--capture", action="store_true", help="consume the queue instead of reading the latest value")
    p.add_argument("--interval", type=float, default=1.0, help="seconds between reads")
    p.add_argument("--count", type=int, default=0, help="number of reads (0 = forever)")
    args = p.parse_args(argv)

    try:
        connected = start_sensor()
    except (ConfigurationError, ValueError) as e:
        # ValueError: número malformado en una variable de entorno
        logger.error("Invalid configuration: %s", e)
        return 2

    sensor = get_sensor()
    logger.info("Sensor started (connected=%s, capture=%s)", connected, args.capture)

    reads = 0
    try:
        while args.count == 0 or reads < args.count:
            reads += 1
            try:
                reading = sensor.read(capture=args.capture)
            except DecodeError as e:
                logger.warning("Decode error: %s", e)
            else:
                if reading.has_payload:
                    print(json.dumps(reading.to_dict(), default=_json_default), flush=True)
                else:
                    logger.debug("No data (%s)", reading.status.value)
            time.sleep(args.interval)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        logger.info("%s", sensor.stats_summary())
        stop_sensor()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
