import logging

import httpx

log = logging.getLogger("cropscan.http")

USER_AGENT = "CropScan/1.0"


def init_http() -> httpx.AsyncClient:
    """Build the shared HTTP client used by every outbound adapter."""
    # Reasonable timeouts for the upstream APIs:
    # - connect: 10s (establishing connection)
    # - read: 25s (Gemini and crop.health can be slow)
    # - write: 10s (image and audio uploads)
    # - pool: 30s (getting connection from pool)
    timeout_config = httpx.Timeout(
        connect=10.0,
        read=25.0,
        write=10.0,
        pool=30.0
    )

    client = httpx.AsyncClient(
        timeout=timeout_config,
        limits=httpx.Limits(
            max_keepalive_connections=50,
            max_connections=100,
            keepalive_expiry=30
        ),
        headers={
            "Accept-Encoding": "gzip, deflate",
            "User-Agent": USER_AGENT,
        },
    )
    log.info("HTTP client initialized")
    return client


async def close_http(client: httpx.AsyncClient) -> None:
    if client is not None:
        await client.aclose()
        log.info("HTTP client closed")


def upstream_body(response: httpx.Response):
    """Best-effort decode of an upstream error body for diagnostics."""
    try:
        return response.json()
    except ValueError:
        return response.text
