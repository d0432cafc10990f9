"""
Disc Rescue Backend — Disc Catalog Client
==========================================

What:  Fetches the current brand and mold names from the Disc Rescue catalog API.
Who:   Called once per image by ImageAnalysisService, before categorization.
How:   Two sequential GETs with an explicit timeout:
           GET {catalog_api_url}/brands  → data[].attributes.BrandName
           GET {catalog_api_url}/discs   → data[].attributes.MoldName
       Names are lower-cased and de-duplicated, keeping API order.

Failure policy (fail open):
    Any transport error, timeout, non-2xx status or unexpected payload shape
    returns empty reference lists. The categorizer then tags nothing as Brand or
    Disc, and the image request still succeeds. Nothing is cached and nothing
    is retried.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceData:
    """Brand and mold names as of the fetch; empty tuples when unavailable."""

    brands: Tuple[str, ...] = ()
    discs: Tuple[str, ...] = ()


class CatalogClient:
    """
    Async client for the read-only catalog endpoints.

    The underlying httpx.AsyncClient can be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created on first use and closed by
    `close()` during application shutdown.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.catalog_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.catalog_timeout
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_reference_data(self) -> ReferenceData:
        """
        Fetch both reference lists.

        Returns:
            ReferenceData with lower-cased names; empty lists on any failure.
        """
        try:
            brands = await self._fetch_names("/brands", "BrandName")
            discs = await self._fetch_names("/discs", "MoldName")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(
                "Catalog reference data unavailable (%s: %s); matching brands and discs disabled",
                type(e).__name__,
                str(e),
            )
            return ReferenceData()

        logger.debug("Fetched %d brands and %d discs from catalog", len(brands), len(discs))
        return ReferenceData(brands=brands, discs=discs)

    async def _fetch_names(self, path: str, attribute: str) -> Tuple[str, ...]:
        """GET one collection and pull `attributes.<attribute>` from every record."""
        response = await self._get_client().get(
            f"{self.base_url}{path}",
            timeout=httpx.Timeout(self.timeout),
        )
        response.raise_for_status()
        records = response.json()["data"]
        if not isinstance(records, list):
            raise TypeError(f"expected a list under 'data' for {path}")

        names = []
        for record in records:
            name = record["attributes"][attribute]
            if isinstance(name, str) and name.strip():
                names.append(name.strip().lower())

        return tuple(dict.fromkeys(names))
