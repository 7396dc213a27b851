"""HTTP(S) resource download with httpx.

Each resource is streamed into ``<dest>.part`` and renamed on success, so
an interrupted or failed download never leaves a half-written file under
its final name.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class DownloadError(RuntimeError):
    """Raised when one resource cannot be fetched."""


class Downloader:
    """Thin wrapper around a shared ``httpx.Client``.

    Parameters
    ----------
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional httpx transport; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self) -> Downloader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, uri: str, dest: Path) -> Path:
        """Download *uri* to *dest* and return *dest*.

        Raises
        ------
        DownloadError
            On any transport error or non-2xx response.
        """
        dest = Path(dest)
        part = dest.with_name(dest.name + ".part")
        logger.info("GET %s -> %s", uri, dest.name)
        try:
            with self._client.stream("GET", uri) as response:
                response.raise_for_status()
                with part.open("wb") as fh:
                    for chunk in response.iter_bytes(_CHUNK_SIZE):
                        fh.write(chunk)
            part.replace(dest)
        except (httpx.HTTPError, OSError) as exc:
            part.unlink(missing_ok=True)
            raise DownloadError(f"{uri}: {exc}") from exc
        return dest
