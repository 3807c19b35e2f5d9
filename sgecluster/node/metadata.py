"""Instance metadata client.

Reads custom attributes written at instance creation from the metadata
server. This is the node's only source for its cluster role.
"""

from __future__ import annotations

from types import TracebackType

import httpx
from loguru import logger

from sgecluster.constants import METADATA_HEADERS, METADATA_URL
from sgecluster.core.exceptions import MetadataError

log = logger.bind(component="metadata")


class MetadataClient:
    def __init__(
        self,
        base_url: str = METADATA_URL,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers=METADATA_HEADERS,
            timeout=timeout,
            transport=transport,
        )

    def get_optional(self, key: str) -> str | None:
        """Return an attribute, or None if it is not set."""
        try:
            response = self._client.get(key)
        except httpx.HTTPError as e:
            raise MetadataError(f"Metadata request for '{key}' failed: {e}") from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            raise MetadataError(
                f"Metadata request for '{key}' failed: HTTP {response.status_code}: {response.text}"
            )

        value = response.text.strip()
        log.debug("{key} = {value}", key=key, value=value)
        return value

    def get(self, key: str) -> str:
        """Return a required attribute."""
        if not (value := self.get_optional(key)):
            raise MetadataError(f"Metadata attribute '{key}' is not set")
        return value

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> MetadataClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
