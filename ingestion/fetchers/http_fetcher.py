"""
HTTP asset fetcher
"""

import logging
from typing import Optional

import httpx

from core.config import settings
from core.exceptions import AssetFetchError
from ingestion.stores.base import AssetFetcher

logger = logging.getLogger(__name__)


class HttpAssetFetcher(AssetFetcher):
    """
    Download asset content over HTTP(S).

    Features:
    - Follows redirects
    - Fixed user agent and timeout
    - Empty bodies and HTTP errors are reported as AssetFetchError
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout if timeout is not None else settings.ASSET_FETCH_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": user_agent or settings.ASSET_USER_AGENT}
        )

    def fetch(self, url: str) -> bytes:
        logger.debug(f"Fetching asset {url}")

        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise AssetFetchError(
                f"Request failed for {url}",
                context={"url": url},
                original_exception=e
            )

        if response.status_code >= 400:
            raise AssetFetchError(
                f"HTTP {response.status_code} for {url}",
                context={"url": url, "status_code": response.status_code}
            )

        if not response.content:
            raise AssetFetchError(
                f"Empty response body for {url}",
                context={"url": url, "status_code": response.status_code}
            )

        return response.content

    def close(self):
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
