import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import Context, FastMCP

from signalk_wunderground.config import load_config
from signalk_wunderground.exceptions import ConfigurationError
from signalk_wunderground.geofence import haversine_distance, is_within_range
from signalk_wunderground.models import Coordinates
from signalk_wunderground.scheduler import SubmissionScheduler
from signalk_wunderground.signalk import SignalKStream

load_dotenv()

config = load_config()


def configure_logging(log_file: str = config.log_file, level: int = logging.INFO) -> None:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )


configure_logging()

logger = logging.getLogger("signalk_wunderground")


def _report_status(message: str) -> None:
    logger.info(f"Status: {message}")


scheduler = SubmissionScheduler(config, status_callback=_report_status)
stream = SignalKStream(config.signalk_url, scheduler.handle_delta)


_active_sessions = 0


async def start_plugin() -> bool:
    try:
        scheduler.start()
    except ConfigurationError as e:
        logger.error(f"Weather Underground plugin not activated: {str(e)}")
        return False
    stream.start()
    return True


async def stop_plugin() -> None:
    if not scheduler.running:
        return
    await asyncio.to_thread(stream.stop)
    await scheduler.stop()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Run the plugin while at least one MCP session is open.

    SSE servers enter the lifespan once per client connection, so the plugin is
    started by the first session and stopped when the last one closes.
    """
    global _active_sessions
    _active_sessions += 1
    if _active_sessions == 1:
        await start_plugin()
    try:
        yield
    finally:
        _active_sessions -= 1
        if _active_sessions == 0:
            await stop_plugin()


mcp = FastMCP(
    "SignalK Weather Underground",
    instructions="Submits vessel weather observations to Weather Underground while moored at the station",
    dependencies=["httpx", "pydantic", "pydantic-settings", "python-dotenv", "websocket-client"],
    debug=False,
    log_level="INFO",
    port=config.port,
    lifespan=lifespan,
)


# Tools
@mcp.tool()
async def get_submission_status() -> Dict[str, Any]:
    """Get the plugin status and the time of the last successful submission"""
    last = scheduler.last_successful_submission
    outcome = scheduler.last_outcome
    return {
        "status": scheduler.status,
        "state": scheduler.state.value,
        "running": scheduler.running,
        "last_successful_submission": last.isoformat() if last else None,
        "last_outcome": outcome.model_dump(mode="json") if outcome else None,
    }


@mcp.tool()
async def get_current_observation() -> Dict[str, Any]:
    """Get the readings aggregated so far in the current submission interval"""
    return scheduler.window.snapshot().model_dump(mode="json")


@mcp.tool()
async def check_geofence(latitude: Optional[float] = None, longitude: Optional[float] = None) -> Dict[str, Any]:
    """
    Check whether a position is close enough to the station to submit

    Args:
        latitude: Latitude in degrees, defaults to the latest vessel position
        longitude: Longitude in degrees, defaults to the latest vessel position
    """
    if latitude is not None and longitude is not None:
        current = Coordinates(latitude=latitude, longitude=longitude)
    else:
        current = scheduler.window.snapshot().position

    reference = scheduler.reference
    distance = haversine_distance(current, reference) if current and reference else None
    return {
        "position": current.model_dump() if current else None,
        "station": reference.model_dump() if reference else None,
        "distance_meters": round(distance, 1) if distance is not None else None,
        "within_range": is_within_range(current, reference, scheduler.geofence_radius),
    }


@mcp.tool()
async def submit_now(ctx: Context) -> Dict[str, Any]:
    """Run a submission cycle immediately instead of waiting for the next interval"""
    await ctx.info("Running submission cycle")
    try:
        scheduler.validate_config()
    except ConfigurationError as e:
        await ctx.error(str(e))
        return {"submitted": False, "error": str(e)}

    outcome = await scheduler.run_submission_cycle()
    if outcome is None:
        await ctx.info("Submission skipped")
        return {"submitted": False, "outcome": None}
    return {"submitted": outcome.success, "outcome": outcome.model_dump(mode="json")}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    # For running directly
    main()
