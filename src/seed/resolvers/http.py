"""
HTTP resolver: fetch Things from a remote endpoint.

Each resolve POSTs a form-encoded ``address`` field to the endpoint and
decodes the JSON response body as the expected Thing type.

Failure mapping:
    404                     → RecordNotFoundError
    other non-2xx           → ResolverUnavailableError (retryable for 5xx/429)
    timeout                 → ResolverTimeoutError
    other transport errors  → ResolverUnavailableError
    malformed body          → ResolutionError (cause: DecodeError)

Usage:
    with HttpResolver("http://localhost:3000/api/thing", timeout=10.0) as resolver:
        seed = new_seed(origin, resolver)
"""

from __future__ import annotations

from typing import Any

import httpx

from seed.core.deadline import get_effective_timeout
from seed.core.errors import (
    RecordNotFoundError,
    ResolutionError,
    ResolverTimeoutError,
    ResolverUnavailableError,
)
from seed.resolvers.protocol import BaseResolver, ResolverType
from seed.things.models import Thing

DEFAULT_URL = "http://localhost:3000/api/thing"
DEFAULT_TIMEOUT = 10.0


class HttpResolver(BaseResolver):
    """Resolve addresses by POSTing them to an HTTP endpoint."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        *,
        name: str = "http",
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = 0,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        client: httpx.Client | None = None,
        strict: bool = False,
    ):
        super().__init__(name=name, resolver_type=ResolverType.HTTP, strict=strict)
        self._url = url
        self._timeout = timeout
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=timeout,
                headers=headers,
                transport=transport or httpx.HTTPTransport(retries=retries),
            )
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout

    def _resolve(self, address: str, thing_type: int) -> Thing:
        context: dict[str, Any] = {"url": self._url}
        # Never wait past the active build deadline
        timeout = get_effective_timeout(self._timeout)
        try:
            response = self._client.post(
                self._url,
                data={"address": address},
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise ResolverTimeoutError(
                f"Timed out after {timeout:.3g}s resolving {address!r}",
                address=address,
                thing_type=int(thing_type),
                cause=e,
            ).with_context(**context) from e
        except httpx.TransportError as e:
            raise ResolverUnavailableError(
                f"Transport failure resolving {address!r}: {e}",
                address=address,
                thing_type=int(thing_type),
                cause=e,
            ).with_context(**context) from e

        context["http_status"] = response.status_code
        if response.status_code == 404:
            raise RecordNotFoundError(
                f"No record at address {address!r}",
                address=address,
                thing_type=int(thing_type),
            ).with_context(**context)
        if not response.is_success:
            raise ResolverUnavailableError(
                f"HTTP {response.status_code} resolving {address!r}",
                address=address,
                thing_type=int(thing_type),
                retryable=response.status_code >= 500 or response.status_code == 429,
            ).with_context(**context)

        try:
            return self._decode(response.content, address, thing_type)
        except ResolutionError as e:
            raise e.with_context(**context)

    def close(self) -> None:
        """Close the underlying client if this resolver created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpResolver:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


__all__ = ["HttpResolver", "DEFAULT_URL", "DEFAULT_TIMEOUT"]
