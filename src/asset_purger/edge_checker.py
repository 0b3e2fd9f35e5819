"""Edge Existence Checker - probes the CDN's public edge for a path."""

from typing import Optional, Protocol

import requests

from shared.logger import StructuredLogger
from shared.retry import call_with_retry


class EdgeChecker(Protocol):
    """Anything the coordinator can ask whether an edge path is cached."""

    def exists(self, domain: str, edge_path: str) -> bool: ...

    def close(self) -> None: ...


class EdgeExistenceChecker:
    """Report whether a path is still served by the distribution."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        retry_attempts: int = 1,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry_attempts = retry_attempts

    def exists(self, domain: str, edge_path: str) -> bool:
        """
        True iff GET https://<domain><edge_path> answers 2xx.

        Network failures count as absent: skipping an invalidation only
        delays eviction until the cached copy's TTL runs out.
        """
        url = f"https://{domain}/{edge_path.lstrip('/')}"
        try:
            status_code = call_with_retry(
                lambda: self._fetch_status(url),
                attempts=self.retry_attempts,
                retry_on=(requests.ConnectionError, requests.Timeout),
                operation="edge_probe",
            )
        except requests.RequestException as e:
            StructuredLogger.warning("Edge probe failed, treating as not cached", url=url, exception=e)
            return False

        StructuredLogger.debug("Edge probe completed", url=url, status_code=status_code)
        return 200 <= status_code < 300

    def _fetch_status(self, url: str) -> int:
        # stream=True avoids downloading the asset body
        with self.session.get(url, timeout=self.timeout, stream=True) as response:
            return response.status_code

    def close(self) -> None:
        self.session.close()


class AlwaysPresentChecker:
    """Ungated variant: every path is treated as cached."""

    def exists(self, domain: str, edge_path: str) -> bool:
        return True

    def close(self) -> None:
        pass
