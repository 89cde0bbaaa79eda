"""Signal K ingestion: subscription message, delta parsing and websocket stream.

The stream delivers deltas shaped like::

    {"context": "vessels.urn:...",
     "updates": [{"timestamp": "2025-06-01T12:00:00.000Z",
                  "values": [{"path": "environment.outside.temperature", "value": 291.3}]}]}
"""

import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError
from websocket import WebSocketException, WebSocketTimeoutException, create_connection

from signalk_wunderground.aggregator import SUBSCRIBED_PATHS, WIND_SPEED
from signalk_wunderground.models import Reading

logger = logging.getLogger("signalk_wunderground.signalk")

POLL_INTERVAL = 1  # seconds

# Wind speed is polled faster so that gusts are not missed
FAST_PATHS = {WIND_SPEED: POLL_INTERVAL * 100}


def build_subscription(paths: Iterable[str] = SUBSCRIBED_PATHS, context: str = "vessels.self") -> Dict[str, Any]:
    return {
        "context": context,
        "subscribe": [{"path": path, "period": FAST_PATHS.get(path, POLL_INTERVAL * 1000)} for path in paths],
    }


def parse_delta(delta: Dict[str, Any]) -> List[Reading]:
    """Extract every (path, value, timestamp) from a Signal K delta.

    Non-delta messages (hello, errors) yield an empty list and malformed
    update or value entries are skipped.
    """
    readings = []
    updates = delta.get("updates")
    if not isinstance(updates, list):
        return readings
    for update in updates:
        if not isinstance(update, dict) or not isinstance(update.get("values"), list):
            continue
        timestamp = update.get("timestamp")
        for item in update["values"]:
            if not isinstance(item, dict):
                continue
            path = item.get("path")
            if not path:
                continue
            try:
                readings.append(Reading(path=path, value=item.get("value"), timestamp=timestamp))
            except ValidationError as e:
                logger.warning(f"Skipping unparseable update for {path}: {e}")
    return readings


class SignalKStream:
    """Reads deltas from a Signal K server websocket on a background thread"""

    def __init__(
        self,
        url: str,
        on_delta: Callable[[Dict[str, Any]], Any],
        paths: Iterable[str] = SUBSCRIBED_PATHS,
        reconnect_delay: float = 5.0,
        recv_timeout: float = 5.0,
    ):
        self.url = url
        self.on_delta = on_delta
        self.paths = tuple(paths)
        self.reconnect_delay = reconnect_delay
        self.recv_timeout = recv_timeout
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="signalk-stream", daemon=True)
        self._thread.start()
        logger.info(f"Subscribed to Signal K stream at {self.url}")

    def stop(self, timeout: float = 10.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._consume()
            except (WebSocketException, OSError) as e:
                logger.error(f"Subscription error: {str(e)}")
            except Exception:
                logger.exception("Signal K stream failed")
            if not self._stop.wait(self.reconnect_delay):
                logger.info("Reconnecting to Signal K stream")

    def _consume(self) -> None:
        ws = create_connection(self.url, timeout=self.recv_timeout)
        try:
            ws.send(json.dumps(build_subscription(self.paths)))
            while not self._stop.is_set():
                try:
                    message = ws.recv()
                except WebSocketTimeoutException:
                    continue
                if not message:
                    continue
                self.handle_message(message)
        finally:
            ws.close()

    def handle_message(self, message: str) -> None:
        try:
            delta = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring non-JSON message: {message[:200]}")
            return
        if not isinstance(delta, dict):
            return
        try:
            self.on_delta(delta)
        except Exception:
            logger.exception(f"Failed to process delta: {message[:200]}")
