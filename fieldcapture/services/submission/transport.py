"""
HTTP transport for submission payloads.

The backend is a script endpoint that accepts the JSON body as
``text/plain`` and answers through redirects; the response body is not
needed. Failures are reported as ``TransportError`` and never retried here.
"""

import logging

import httpx

from fieldcapture.core.config import get_settings
from fieldcapture.core.exceptions import TransportError
from fieldcapture.core.models import SubmissionPayload
from fieldcapture.core.utils import timestamp_ms

logger = logging.getLogger(__name__)


class SubmissionTransport:
    """Posts a ``SubmissionPayload`` as a single request.

    Args:
        url: Submission endpoint (default from settings).
        timeout: Request timeout in seconds.
        client: Optional pre-configured ``httpx.AsyncClient`` (tests).
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._url = url if url is not None else settings.submission_url
        self._timeout = timeout or settings.submission_timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._url)

    async def send(self, payload: SubmissionPayload) -> None:
        """Deliver the payload.

        Raises:
            TransportError: On missing configuration, network failure or an
                HTTP error status.
        """
        if not self._url:
            raise TransportError("Submission URL is not configured")

        body = payload.serialize().encode("utf-8")
        # Cache-busting timestamp, as browsers would add
        params = {"t": str(timestamp_ms())}
        headers = {"Content-Type": "text/plain;charset=utf-8"}
        try:
            if self._client is not None:
                resp = await self._client.post(
                    self._url, content=body, params=params, headers=headers, follow_redirects=True
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(
                        self._url,
                        content=body,
                        params=params,
                        headers=headers,
                        follow_redirects=True,
                    )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise TransportError(f"Submission timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"Submission rejected with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Submission failed: {exc}") from exc

        logger.info("Submitted payload: %d bytes, %d files", len(body), len(payload.files))
