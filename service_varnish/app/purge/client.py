"""
PURGE client for the Varnish server.
"""

import httpx

from shared.logging import get_logger

from .models import NO_SERVER_CONFIGURED, PurgeErrorKind, PurgeOutcome, PurgeRequest


DEFAULT_PURGE_TIMEOUT = 10.0


class PurgeClient:
    """Sends one PURGE request per call and classifies the response.

    There is no retry: a purge is at most one round trip. The server is an
    internal cache reached over plain HTTP, so certificate checks are off.
    """

    def __init__(self, timeout: float = DEFAULT_PURGE_TIMEOUT):
        self.timeout = timeout
        self.logger = get_logger("varnish.purge_client")

    async def purge(self, request: PurgeRequest) -> PurgeOutcome:
        """Send ``request`` and return its outcome. Never raises for purge failures."""
        if not request.server_address:
            return PurgeOutcome.failed(PurgeErrorKind.NO_SERVER_CONFIGURED, NO_SERVER_CONFIGURED)

        url = f"http://{request.server_address}/"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, verify=False) as client:
                response = await client.request("PURGE", url, headers=request.headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            message = str(exc) or exc.__class__.__name__
            self.logger.warning("PURGE transport failure", url=url, host=request.target_host, error=message)
            return PurgeOutcome.failed(PurgeErrorKind.TRANSPORT_FAILURE, message)

        if response.status_code != 200:
            self.logger.warning(
                "PURGE rejected",
                url=url,
                host=request.target_host,
                status_code=response.status_code,
            )
            return PurgeOutcome.failed(
                PurgeErrorKind.NON_SUCCESS_STATUS,
                f"HTTP Status Code: {response.status_code}",
                http_status=response.status_code,
            )

        self.logger.info("PURGE accepted", url=url, host=request.target_host)
        return PurgeOutcome(success=True, http_status=200)
