"""HTTP GET + JSON decoding for every upstream weather/geocoding service."""
from __future__ import annotations

import time
from typing import Any, Mapping, Optional

import requests
import urllib3.exceptions

from skycast.config import Settings, settings as default_settings
from skycast.data_sources.resolver import ResilientDNSAdapter, ResilientResolver
from skycast.errors import ErrorKind, GatewayError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/gateway")

MAX_ATTEMPTS = 2


def build_session(settings: Settings) -> requests.Session:
    """Create a session whose connections resolve names through public DNS first."""
    session = requests.Session()
    adapter = ResilientDNSAdapter(
        ResilientResolver(settings.dns_servers, timeout=settings.dns_timeout_seconds)
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class UpstreamGateway:
    """GET-and-decode helper with one retry on network failure.

    Non-2xx responses and undecodable bodies are terminal for the call; only
    connection errors and timeouts are retried, once, after a fixed backoff.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.timeout = timeout if timeout is not None else self.settings.request_timeout_seconds
        self.retry_backoff_sec = self.settings.retry_backoff_seconds
        self.body_limit = self.settings.error_body_limit
        self.session = session or build_session(self.settings)

    def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> requests.Response:
        """Issue a streamed GET, retrying once on network failure.

        The body is not downloaded yet; the caller reads it and closes the response.
        """
        last_error: Optional[requests.RequestException] = None
        for attempt in range(MAX_ATTEMPTS):
            if attempt > 0:
                time.sleep(self.retry_backoff_sec)
            try:
                return self.session.get(
                    url, params=params, headers=headers, timeout=self.timeout, stream=True
                )
            except (requests.ConnectionError, requests.Timeout) as exc:
                last_error = exc
                logger.warning(
                    "Upstream request failed on attempt %d/%d: %s",
                    attempt + 1,
                    MAX_ATTEMPTS,
                    exc,
                    extra={"url": url},
                )
        raise GatewayError(
            ErrorKind.NETWORK,
            f"request failed after {MAX_ATTEMPTS} attempts: {last_error}",
            url=url,
        ) from last_error

    def fetch_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> dict:
        """GET `url` and decode its JSON object body."""
        resp = self.get(url, params=params, headers=headers)
        try:
            return self._decode(url, resp)
        except (requests.RequestException, urllib3.exceptions.HTTPError) as exc:
            raise GatewayError(ErrorKind.NETWORK, f"reading response body failed: {exc}", url=url) from exc
        finally:
            resp.close()

    def _read_error_body(self, resp: requests.Response) -> str:
        """Read at most `body_limit` bytes of an error page, leaving the rest unread."""
        chunk = resp.raw.read(self.body_limit, decode_content=True) or b""
        return chunk.decode("utf-8", errors="replace")

    def _decode(self, url: str, resp: requests.Response) -> dict:
        elapsed = getattr(resp, "elapsed", None)
        logger.debug(
            "Upstream GET %s -> %s in %.2fs",
            url,
            resp.status_code,
            elapsed.total_seconds() if elapsed else 0.0,
        )

        if not 200 <= resp.status_code < 300:
            body = self._read_error_body(resp)
            raise GatewayError(
                ErrorKind.UPSTREAM,
                f"API error {resp.status_code}: {body}",
                url=url,
                status_code=resp.status_code,
                body=body,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise GatewayError(
                ErrorKind.DECODE,
                f"decode failed: {exc}",
                url=url,
                body=(resp.text or "")[: self.body_limit],
            ) from exc
        if not isinstance(data, dict):
            raise GatewayError(
                ErrorKind.DECODE,
                f"decode failed: expected a JSON object, got {type(data).__name__}",
                url=url,
            )
        return data

    def close(self) -> None:
        self.session.close()
