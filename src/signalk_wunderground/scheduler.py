import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from signalk_wunderground.aggregator import AggregationWindow
from signalk_wunderground.config import Config
from signalk_wunderground.encoder import encode_observation
from signalk_wunderground.exceptions import ConfigurationError
from signalk_wunderground.geofence import GEOFENCE_RADIUS_METERS, is_within_range
from signalk_wunderground.models import Coordinates, SchedulerState, SubmissionOutcome
from signalk_wunderground.signalk import parse_delta
from signalk_wunderground.status import last_submission_message, submitting_message
from signalk_wunderground.uploader import WundergroundClient

logger = logging.getLogger("signalk_wunderground.scheduler")

STATUS_INTERVAL = 60  # seconds
STALE_READING_AGE = 60  # seconds
NOT_SUBMITTED_STATUS = "No weather report submitted yet"


class SubmissionScheduler:
    """Drives ingestion, the submission cycle and the status report.

    The scheduler owns the aggregation window. Ingestion writes to it at any
    time; every submission tick takes (snapshot and reset) the window, checks
    the geofence and uploads the observation if the vessel is at the station.
    """

    def __init__(
        self,
        config: Config,
        client: Optional[WundergroundClient] = None,
        window: Optional[AggregationWindow] = None,
        status_callback: Optional[Callable[[str], Any]] = None,
        geofence_radius: float = GEOFENCE_RADIUS_METERS,
    ):
        self.config = config
        self.client = client or WundergroundClient(config.submit_url)
        self.window = window or AggregationWindow()
        self.status_callback = status_callback
        self.geofence_radius = geofence_radius

        self.state = SchedulerState.IDLE
        self.last_successful_submission: Optional[datetime] = None
        self.last_outcome: Optional[SubmissionOutcome] = None
        self._status = NOT_SUBMITTED_STATUS
        self._tasks: List[asyncio.Task] = []

    @property
    def status(self) -> str:
        return self._status

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def reference(self) -> Optional[Coordinates]:
        if self.config.station_lat is None or self.config.station_lon is None:
            return None
        return Coordinates(latitude=self.config.station_lat, longitude=self.config.station_lon)

    def _set_status(self, message: str) -> None:
        self._status = message
        if self.status_callback is not None:
            self.status_callback(message)

    def validate_config(self) -> None:
        if not self.config.station_id or not self.config.password:
            raise ConfigurationError("Station ID and password are required")
        if self.reference is None:
            raise ConfigurationError("Station latitude and longitude are required")

    def start(self) -> None:
        """Start the status and submission tasks on the running event loop.

        Raises:
            ConfigurationError: if the station is not fully configured, in which
                case nothing is started
        """
        try:
            self.validate_config()
        except ConfigurationError as e:
            logger.error(str(e))
            self._set_status(str(e))
            raise

        if self.running:
            return

        interval = self.config.submit_interval
        self._set_status(f"{submitting_message(interval)}, {NOT_SUBMITTED_STATUS.lower()}")
        logger.info(f"Starting submission process every {interval:g} minutes")

        self._tasks = [
            asyncio.create_task(self._every(STATUS_INTERVAL, self._status_tick), name="wunderground-status"),
            asyncio.create_task(self._every(interval * 60, self.run_submission_cycle), name="wunderground-submit"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.state = SchedulerState.IDLE
        self._set_status("Plugin stopped")
        logger.info("Submission process stopped")

    async def _every(self, seconds: float, func: Callable[[], Awaitable[Any]]) -> None:
        while True:
            await asyncio.sleep(seconds)
            try:
                await func()
            except Exception:
                logger.exception(f"Periodic task {func.__name__} failed")

    def ingest(self, path: str, value: Any, timestamp: Optional[datetime] = None) -> bool:
        if timestamp is not None and timestamp.tzinfo is not None:
            age = (datetime.now(timezone.utc) - timestamp).total_seconds()
            if age > STALE_READING_AGE:
                logger.debug(f"Reading for {path} is {age:.0f}s old")
        return self.window.ingest(path, value)

    def handle_delta(self, delta: Dict[str, Any]) -> int:
        """Ingest every value of a Signal K delta, returns the number stored"""
        stored = 0
        for reading in parse_delta(delta):
            if self.ingest(reading.path, reading.value, reading.timestamp):
                stored += 1
        return stored

    async def run_submission_cycle(self) -> Optional[SubmissionOutcome]:
        """Run one submission cycle.

        Returns the upload outcome, or None when the cycle was skipped (vessel
        away from the station, nothing collected, or a cycle already running).
        """
        if self.state == SchedulerState.SUBMITTING:
            logger.warning("Previous submission still in flight, skipping this cycle")
            return None

        self.state = SchedulerState.SUBMITTING
        try:
            snapshot = self.window.take()

            if snapshot.is_empty:
                logger.info("Nothing collected this interval, skipping submission")
                return None

            if not is_within_range(snapshot.position, self.reference, self.geofence_radius):
                logger.info(
                    f"Vessel is not within {self.geofence_radius:.0f}m of the fixed location, skipping submission"
                )
                return None

            if not snapshot.has_wind:
                logger.info("No wind speed samples collected this interval, skipping submission")
                return None

            params = encode_observation(snapshot, self.config)
            outcome = await self.client.submit(params)
            self.last_outcome = outcome
            if outcome.success:
                self.last_successful_submission = outcome.timestamp
            return outcome
        finally:
            self.state = SchedulerState.IDLE

    async def _status_tick(self) -> None:
        self.run_status_tick()

    def run_status_tick(self, now: Optional[datetime] = None) -> Optional[str]:
        message = last_submission_message(self.last_successful_submission, now)
        if message is None:
            return None
        self._set_status(message)
        return message
