# src/rowstream/plugins/sources/http_source.py
"""Remote byte source fetched over HTTP(S) with httpx.

The response body is streamed, never buffered whole. When the URL path ends
in ``.gz`` the body is decompressed incrementally.
"""

from __future__ import annotations

from collections.abc import Iterator

import httpx
import structlog

from rowstream.contracts import SourceError
from rowstream.plugins.sources.byte_source import DEFAULT_CHUNK_SIZE, FileByteSource, gunzip_chunks

logger = structlog.get_logger(__name__)


class HttpByteSource:
    """Byte source that GETs a URL.

    Each open() issues a new request, so a restarted run re-reads the source
    from the beginning. Retrying transient failures is the host job loop's
    responsibility.

    Args:
        url: http or https URL
        client: Optional shared httpx.Client; a private one is created and
            closed per open() otherwise
        timeout: Request timeout in seconds for a private client
        chunk_size: Size of body chunks handed to the decoder
    """

    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        parsed = httpx.URL(url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"HttpByteSource requires an http(s) URL, got {url!r}")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._url = url
        self._client = client
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._gzipped = parsed.path.endswith(".gz")

    @property
    def url(self) -> str:
        return self._url

    def open(self) -> Iterator[bytes]:
        """Stream the response body.

        The request is sent when the first chunk is requested.

        Raises:
            SourceError: On transport errors or a non-2xx response.
        """
        client = self._client if self._client is not None else httpx.Client(timeout=self._timeout, follow_redirects=True)
        owns_client = self._client is None
        try:
            logger.debug("Fetching remote source", url=self._url, gzipped=self._gzipped)
            with client.stream("GET", self._url) as response:
                if not response.is_success:
                    raise SourceError(f"GET {self._url} returned HTTP {response.status_code}")
                chunks: Iterator[bytes] = response.iter_bytes(self._chunk_size)
                if self._gzipped:
                    chunks = gunzip_chunks(chunks)
                yield from chunks
        except httpx.HTTPError as e:
            raise SourceError(f"Failed to fetch {self._url}: {e}") from e
        finally:
            if owns_client:
                client.close()


def open_byte_source(location: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE, timeout: float = 30.0) -> HttpByteSource | FileByteSource:
    """Build the byte source for a location: http(s) URL or local path."""
    if location.startswith(("http://", "https://")):
        return HttpByteSource(location, chunk_size=chunk_size, timeout=timeout)
    return FileByteSource(location, chunk_size=chunk_size)
