"""Hash-gated retrieval of declared sources from trusted origins."""

from __future__ import annotations

import re
from dataclasses import dataclass
from http.client import HTTPException
from typing import Callable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import DEFAULT_IPFS_GATEWAY, DEFAULT_REQUEST_TIMEOUT
from ..hashing import keccak256, normalize_hash
from ..logging import get_logger

GITHUB_PATTERN = re.compile(r"^https?://github\.com/")
RAW_GITHUB_HOST = "https://raw.githubusercontent.com/"
IPFS_PREFIX = "dweb:/ipfs/"
TRUSTED_IPFS_SCOPE = "@openzeppelin"


@dataclass
class FetchRequest:
    """A single GET issued against a trusted origin."""

    url: str
    timeout: Optional[float]


@dataclass
class FetchResponse:
    status: int
    body: bytes


Transport = Callable[[FetchRequest], FetchResponse]


class RemoteFetcher:
    """Retrieves missing sources from GitHub or the IPFS gateway.

    Only two origins are ever contacted. Sources whose path is a GitHub URL
    are read from the matching raw-content endpoint, and ``@openzeppelin``
    sources are resolved through the IPFS gateway using the ``dweb:/ipfs/``
    address found among the declared URLs. Every other URL is ignored.
    Fetched bytes are returned only when their keccak-256 matches. Transport
    failures of any kind yield None; nothing is retried.
    """

    def __init__(
        self,
        *,
        ipfs_gateway: str = DEFAULT_IPFS_GATEWAY,
        request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
        transport: Transport | None = None,
    ) -> None:
        self.ipfs_gateway = ipfs_gateway
        self.request_timeout = request_timeout
        self._transport = transport or self._http_transport
        self.logger = get_logger("fetch")

    def fetch(self, path: str, urls: Sequence[str], expected_hash: str) -> Optional[bytes]:
        """Return content for ``path`` whose hash is ``expected_hash``, or None."""
        url = self.resolve_url(path, urls)
        if url is None:
            return None
        return self._fetch_verified(path.strip(), url, normalize_hash(expected_hash))

    def resolve_url(self, path: str, urls: Sequence[str]) -> Optional[str]:
        """Return the trusted URL to request for ``path``, if there is one."""
        path = path.strip()
        if GITHUB_PATTERN.match(path):
            return github_raw_url(path)
        if path.startswith(TRUSTED_IPFS_SCOPE):
            for url in urls:
                if url.startswith(IPFS_PREFIX):
                    cid = url[len(IPFS_PREFIX):]
                    return self.ipfs_gateway + quote(cid, safe="/")
        return None

    def _fetch_verified(self, path: str, url: str, expected_hash: str) -> Optional[bytes]:
        self.logger.info("Fetching %s from %s", path, url)
        try:
            response = self._transport(FetchRequest(url=url, timeout=self.request_timeout))
        except (URLError, OSError, HTTPException, ValueError) as exc:
            self.logger.warning("Failed fetching %s from %s: %s", path, url, exc)
            return None

        if response.status != 200:
            self.logger.warning(
                "Failed fetching %s from %s: status %d", path, url, response.status
            )
            return None

        if keccak256(response.body) != expected_hash:
            self.logger.warning(
                "The provided hash value does not match the calculated hash value of %s fetched from %s",
                path,
                url,
            )
            return None

        self.logger.info("Successful fetching of %s from %s", path, url)
        return response.body

    @staticmethod
    def _http_transport(request: FetchRequest) -> FetchResponse:
        http_request = Request(request.url, method="GET")
        try:
            with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
                return FetchResponse(status=response.status, body=response.read())
        except HTTPError as exc:
            return FetchResponse(status=exc.code, body=b"")


def github_raw_url(url: str) -> str:
    """Rewrite a github.com file URL to its raw.githubusercontent.com form."""
    remainder = GITHUB_PATTERN.sub("", url, count=1)
    parts = remainder.split("/")
    # owner/repo/blob/ref/path -> owner/repo/ref/path
    if len(parts) > 3 and parts[2] == "blob":
        del parts[2]
    # Existing %XX escapes are kept as declared.
    return RAW_GITHUB_HOST + quote("/".join(parts), safe="/%")


__all__ = ["FetchRequest", "FetchResponse", "RemoteFetcher", "github_raw_url"]
