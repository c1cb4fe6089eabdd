import logging
import httpx
from typing import Optional

log = logging.getLogger("krishimitra.http")

# Global HTTP client instance
client: Optional[httpx.AsyncClient] = None

async def init_http():
    """Initialize the global HTTP client shared by the outbound integrations."""
    global client

    # weather uses these; market and pest pass per-call timeouts
    timeout_config = httpx.Timeout(
        connect=10.0,
        read=25.0,
        write=10.0,
        pool=30.0
    )

    client = httpx.AsyncClient(
        timeout=timeout_config,
        limits=httpx.Limits(
            max_keepalive_connections=20,
            max_connections=50,
            keepalive_expiry=30
        ),
        headers={
            "Accept-Encoding": "gzip, deflate",
            "User-Agent": "KrishiMitra/1.0 (+https://krishimitra.example.com)"
        },
    )
    log.info("HTTP client initialized")

async def close_http():
    """Close the global HTTP client."""
    global client
    if client:
        await client.aclose()
        client = None
        log.info("HTTP client closed")

def get_http_client() -> httpx.AsyncClient:
    """Get the global HTTP client instance."""
    if client is None:
        raise RuntimeError("HTTP client not initialized. Call init_http() first.")
    return client
