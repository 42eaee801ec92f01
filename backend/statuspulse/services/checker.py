"""Checker service - performs HTTP and TCP probes."""
import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from ..models import Service

logger = logging.getLogger(__name__)

TIMEOUT_ISSUE = "timeout"


@dataclass
class Outcome:
    """Result of a single probe, independent of the protocol."""
    success: bool
    latency: float = 0.0  # seconds
    status_code: Optional[int] = None
    issue: Optional[str] = None


class CheckerService:
    """Service for probing monitored endpoints."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # Custom transport is only used to route HTTP probes through a mock in tests
        self.transport = transport

    async def probe(self, service: Service) -> Outcome:
        """Run one probe for a service, bounded by its timeout.

        Never raises: configuration problems, transport errors and timeouts
        all come back as failed outcomes.
        """
        issue = self._config_issue(service)
        if issue:
            return Outcome(success=False, issue=issue)

        start = time.monotonic()
        try:
            if service.type == "http":
                coro = self._check_http(service)
            else:
                coro = self._check_tcp(service)
            return await asyncio.wait_for(coro, timeout=service.timeout)
        except asyncio.TimeoutError:
            return Outcome(
                success=False,
                latency=time.monotonic() - start,
                issue=TIMEOUT_ISSUE,
            )

    def _config_issue(self, service: Service) -> Optional[str]:
        """Describe why a service cannot be probed, or None if it can."""
        if service.type not in ("http", "tcp"):
            return f"Unknown service type: {service.type}"
        if not service.domain:
            return "No domain configured"
        if service.type == "tcp" and not service.port:
            return "No port configured for TCP service"
        if not service.timeout or service.timeout <= 0:
            return f"Invalid timeout: {service.timeout}"
        return None

    async def _check_http(self, service: Service) -> Outcome:
        """Perform HTTP check.

        Checks in order:
        1. Transport errors - down with the error text
        2. Expected status code (default 200) - down if mismatch
        3. Expected body pattern (if configured) - down if no match
        """
        target = service.domain
        if "://" not in target:
            target = f"http://{target}"

        expected_status = service.expected_status or 200
        method = (service.method or "GET").upper()
        content = service.post_data if service.post_data else None

        start = time.monotonic()
        try:
            # Disable SSL verification to handle self-signed certificates
            async with httpx.AsyncClient(
                timeout=service.timeout,
                follow_redirects=True,
                verify=False,
                transport=self.transport,
            ) as client:
                response = await client.request(method, target, content=content)

            latency = time.monotonic() - start

            if response.status_code != expected_status:
                return Outcome(
                    success=False,
                    latency=latency,
                    status_code=response.status_code,
                    issue=f"Expected status {expected_status}, got {response.status_code}",
                )

            if service.expected:
                try:
                    matched = re.search(service.expected, response.text) is not None
                except re.error as e:
                    return Outcome(
                        success=False,
                        latency=latency,
                        status_code=response.status_code,
                        issue=f"Invalid expected pattern: {e}",
                    )
                if not matched:
                    pattern = service.expected
                    return Outcome(
                        success=False,
                        latency=latency,
                        status_code=response.status_code,
                        issue=f"Response body did not match: '{pattern[:50]}{'...' if len(pattern) > 50 else ''}'",
                    )

            return Outcome(success=True, latency=latency, status_code=response.status_code)

        except httpx.TimeoutException:
            return Outcome(success=False, latency=time.monotonic() - start, issue=TIMEOUT_ISSUE)
        except httpx.HTTPError as e:
            return Outcome(
                success=False,
                latency=time.monotonic() - start,
                issue=f"Connection error: {str(e) or e.__class__.__name__}",
            )
        except Exception as e:
            logger.debug(f"HTTP probe for {target} failed unexpectedly: {e!r}")
            return Outcome(success=False, latency=time.monotonic() - start, issue=str(e) or repr(e))

    async def _check_tcp(self, service: Service) -> Outcome:
        """Perform TCP connect check. Connection is closed as soon as it opens."""
        host = service.domain
        if "://" in host:
            host = host.split("://")[1]
        if "/" in host:
            host = host.split("/")[0]

        start = time.monotonic()
        try:
            reader, writer = await asyncio.open_connection(host, service.port)
        except OSError as e:
            return Outcome(
                success=False,
                latency=time.monotonic() - start,
                issue=f"Connection error: {e}",
            )

        latency = time.monotonic() - start
        # Close completes in the background, outside the probe timeout
        writer.close()

        return Outcome(success=True, latency=latency)


# Global instance
checker_service = CheckerService()
