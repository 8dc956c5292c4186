"""Connection-level DNS policy for upstream traffic.

Hostnames are looked up against a list of public DNS servers first; only when
every one of them fails does the connection fall back to the operating
system's resolver. The policy is attached to a `requests.Session` once, by
mounting `ResilientDNSAdapter`, and applies to every request that session makes.
"""

from __future__ import annotations

import ipaddress
import socket
import time
from typing import Callable, Optional, Sequence

import dns.exception
import dns.resolver
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from urllib3.exceptions import ConnectTimeoutError, NewConnectionError
from urllib3.util import connection as urllib3_connection

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/resolver")


class ResilientResolver:
    """Resolve hostnames via explicit public DNS servers, one server at a time.

    Each server gets at most `timeout` seconds. When the caller passes its own
    budget, every server shares that one deadline, so a lookup never outlasts
    the connect timeout of the request that triggered it.
    """

    def __init__(
        self,
        nameservers: Sequence[str],
        timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.nameservers = list(nameservers)
        self.timeout = timeout
        self._clock = clock

    def _resolver_for(self, nameserver: str, lifetime: Optional[float] = None) -> dns.resolver.Resolver:
        per_server = self.timeout if lifetime is None else min(self.timeout, lifetime)
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = [nameserver]
        resolver.lifetime = per_server
        resolver.timeout = per_server
        return resolver

    def resolve(self, hostname: str, budget: Optional[float] = None) -> Optional[str]:
        """Return an IPv4 address for `hostname`, or None to defer to the OS resolver."""
        try:
            ipaddress.ip_address(hostname)
            return hostname
        except ValueError:
            pass

        deadline = None if budget is None else self._clock() + budget
        for nameserver in self.nameservers:
            remaining = None if deadline is None else deadline - self._clock()
            if remaining is not None and remaining <= 0:
                logger.info("DNS time budget spent", extra={"hostname": hostname, "budget": budget})
                break
            try:
                answer = self._resolver_for(nameserver, remaining).resolve(hostname, "A")
            except (dns.exception.DNSException, OSError) as exc:
                logger.debug(
                    "Public DNS lookup failed",
                    extra={"hostname": hostname, "nameserver": nameserver, "error": str(exc)},
                )
                continue
            for record in answer:
                return record.to_text()
        logger.info("Falling back to system resolver", extra={"hostname": hostname})
        return None


def _connect_budget(timeout: object) -> Optional[float]:
    """Numeric connect timeout of a urllib3 connection; None for the default sentinel or no limit."""
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        return float(timeout)
    return None


class _ResolvingConnectionMixin:
    """Open the TCP socket to a pre-resolved address, keeping `host` for TLS/SNI."""

    resolver: Optional[ResilientResolver] = None

    def _new_conn(self) -> socket.socket:
        budget = _connect_budget(self.timeout)  # type: ignore[attr-defined]
        address = self.resolver.resolve(self.host, budget) if self.resolver else None
        if address is None:
            return super()._new_conn()  # type: ignore[misc]
        try:
            return urllib3_connection.create_connection(
                (address, self.port),  # type: ignore[attr-defined]
                self.timeout,  # type: ignore[attr-defined]
                source_address=self.source_address,  # type: ignore[attr-defined]
                socket_options=self.socket_options,  # type: ignore[attr-defined]
            )
        except socket.timeout as exc:
            raise ConnectTimeoutError(
                self, f"Connection to {self.host} ({address}) timed out."
            ) from exc
        except OSError as exc:
            raise NewConnectionError(
                self, f"Failed to establish a new connection to {self.host} ({address}): {exc}"
            ) from exc


def _pool_classes(resolver: ResilientResolver) -> dict:
    """Build connection-pool classes whose connections use `resolver`."""
    http_conn = type(
        "ResolvingHTTPConnection", (_ResolvingConnectionMixin, HTTPConnection), {"resolver": resolver}
    )
    https_conn = type(
        "ResolvingHTTPSConnection", (_ResolvingConnectionMixin, HTTPSConnection), {"resolver": resolver}
    )
    http_pool = type("ResolvingHTTPConnectionPool", (HTTPConnectionPool,), {"ConnectionCls": http_conn})
    https_pool = type("ResolvingHTTPSConnectionPool", (HTTPSConnectionPool,), {"ConnectionCls": https_conn})
    return {"http": http_pool, "https": https_pool}


class ResilientDNSAdapter(HTTPAdapter):
    """`requests` transport adapter that routes name resolution through a ResilientResolver."""

    def __init__(self, resolver: ResilientResolver, **kwargs) -> None:
        self.resolver = resolver
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs) -> None:
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = _pool_classes(self.resolver)
