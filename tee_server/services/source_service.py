"""Source image fetching for print and preview requests.

Layers arrive with http(s) URLs (storefront uploads) or inline data URLs.
URL sources are downloaded here with a timeout and a byte cap before the
compositor sees them.
"""

import logging
from typing import List, Optional

import httpx

from tee_print.errors import InvalidInput, ResourceExceeded
from tee_print.layers import ImageLayer, Layer

logger = logging.getLogger(__name__)


class SourceService:
    """Downloads layer sources."""

    def __init__(self, max_bytes: int, timeout_s: float, transport: Optional[httpx.BaseTransport] = None):
        self.max_bytes = max_bytes
        self.timeout_s = timeout_s
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout_s, connect=min(5.0, self.timeout_s)),
            follow_redirects=True,
            transport=self.transport,
            headers={"Accept": "image/*"},
        )

    def fetch(self, url: str) -> bytes:
        """Download a URL, enforcing the byte cap while streaming.

        Raises:
            InvalidInput: Network failure or non-2xx response
            ResourceExceeded: Body larger than max_bytes
        """
        try:
            with self._client() as client:
                with client.stream("GET", url) as response:
                    response.raise_for_status()
                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > self.max_bytes:
                        raise ResourceExceeded("bytes", int(declared), self.max_bytes)
                    chunks = []
                    received = 0
                    for chunk in response.iter_bytes():
                        received += len(chunk)
                        if received > self.max_bytes:
                            raise ResourceExceeded("bytes", received, self.max_bytes)
                        chunks.append(chunk)
        except httpx.HTTPStatusError as e:
            raise InvalidInput(f"Could not fetch image ({e.response.status_code}): {url}", "src") from e
        except httpx.HTTPError as e:
            raise InvalidInput(f"Could not fetch image: {url} ({e})", "src") from e

        logger.info(f"Fetched {received} bytes from {url}")
        return b"".join(chunks)

    def resolve_layers(self, layers: List[Layer]) -> List[Layer]:
        """Attach downloaded bytes to image layers that only carry a URL."""
        resolved = []
        for layer in layers:
            if isinstance(layer, ImageLayer) and layer.data is None and layer.url:
                layer = layer.with_data(self.fetch(layer.url))
            resolved.append(layer)
        return resolved
