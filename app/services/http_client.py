import httpx

from app.shared.config import config

# Realistic browser headers so platform pages answer as they would to a viewer.
SCRAPE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


def build_upstream_client(**kwargs) -> httpx.AsyncClient:
    """Create the outbound client owned by a single request.

    The caller is responsible for closing it once the response is finished.
    """
    kwargs.setdefault("timeout", config.get_upstream_timeout())
    kwargs.setdefault("headers", SCRAPE_HEADERS)
    return httpx.AsyncClient(**kwargs)
