import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from signalk_wunderground.config import SUBMIT_URL
from signalk_wunderground.encoder import build_submission_url
from signalk_wunderground.models import SubmissionOutcome

logger = logging.getLogger("signalk_wunderground.uploader")

SUCCESS_MARKER = "success"


class WundergroundClient:
    """Uploads observations to the Weather Underground PWS endpoint"""

    def __init__(
        self,
        submit_url: str = SUBMIT_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.submit_url = submit_url
        self.timeout = timeout
        self._transport = transport

    async def submit(self, params: Dict[str, str]) -> SubmissionOutcome:
        """Send one observation.

        Never raises: transport errors, unexpected status codes and unexpected
        bodies are all reported as an unsuccessful outcome.
        """
        logger.debug(f"Submitting data: {build_submission_url(params, self.submit_url)}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    self.submit_url,
                    params=params,
                    headers={"User-Agent": "SignalK_Wunderground/1.0"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Error submitting weather report: {str(e)}")
            return SubmissionOutcome(success=False, timestamp=datetime.now(timezone.utc), error=str(e))

        body = response.text.strip()
        success = response.is_success and body == SUCCESS_MARKER
        if success:
            logger.info("Weather report successfully submitted")
        else:
            logger.error(f"Error submitting weather report: HTTP {response.status_code} |{body}|")

        return SubmissionOutcome(
            success=success,
            timestamp=datetime.now(timezone.utc),
            status_code=response.status_code,
            body=body,
        )
