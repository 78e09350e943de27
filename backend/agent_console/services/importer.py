# Agent Console - Fetch skill / agent markdown from a remote URL

import logging
from typing import List
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "Agent-Console/1.0"


class ImportFailure(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def check_domain(url: str, allowed_domains: List[str]) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ImportFailure(400, "Invalid URL format")

    host = parsed.hostname.lower()
    if not any(host == domain or host.endswith(f".{domain}") for domain in allowed_domains):
        raise ImportFailure(403, f"Domain not allowed. Allowed domains: {', '.join(allowed_domains)}")
    return host


async def fetch_markdown(url: str, allowed_domains: List[str], timeout: float, max_bytes: int) -> str:
    """Download a markdown document. Raises ImportFailure with the HTTP status to report."""
    check_domain(url, allowed_domains)

    if url.lower().endswith(".zip"):
        raise ImportFailure(400, "ZIP file import is not supported. Use a direct markdown URL.")

    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": USER_AGENT})
    except httpx.TimeoutException as e:
        raise ImportFailure(504, "Request timeout while fetching URL") from e
    except httpx.HTTPError as e:
        raise ImportFailure(502, f"Failed to fetch URL: {e}") from e

    if response.status_code >= 400:
        raise ImportFailure(502, f"Failed to fetch URL: {response.status_code} {response.reason_phrase}")

    if "application/zip" in response.headers.get("content-type", ""):
        raise ImportFailure(400, "ZIP file import is not supported. Use a direct markdown URL.")

    content = response.text
    if not content.strip():
        raise ImportFailure(400, "URL returned empty content")
    if len(content) > max_bytes:
        raise ImportFailure(413, f"Content too large (max {max_bytes // 1000}KB)")

    logger.info(f"Imported {len(content)} characters from {url}")
    return content
