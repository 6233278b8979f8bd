"""Shared HTTP client construction for media downloads."""

import httpx

from hotelsite.config import Settings


def create_download_client(settings: Settings, **kwargs) -> httpx.AsyncClient:
    """AsyncClient that resolves site-relative URLs against ``site_url``."""
    return httpx.AsyncClient(
        base_url=settings.site_url,
        timeout=settings.media.download_timeout,
        follow_redirects=True,
        **kwargs,
    )
