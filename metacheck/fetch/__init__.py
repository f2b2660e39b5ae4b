"""Remote retrieval of declared sources."""

from .fetcher import FetchRequest, FetchResponse, RemoteFetcher

__all__ = ["FetchRequest", "FetchResponse", "RemoteFetcher"]
