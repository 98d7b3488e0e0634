import asyncio
import ssl
from typing import Any, Dict, Optional

import aiohttp
import certifi

from ragalgo_mcp import config
from ragalgo_mcp.errors import UpstreamError


def _edge_headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {config.ANON_KEY}",
        "x-api-key": config.get_api_key(),
        "Content-Type": "application/json",
    }


def _rest_headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {config.ANON_KEY}",
        "apikey": config.ANON_KEY,
        "Content-Type": "application/json",
    }


def _query_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Drop unset values and stringify the rest for the query string."""
    query: Dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        else:
            query[key] = str(value)
    return query


async def _request(
    method: str,
    url: str,
    headers: Dict[str, str],
    params: Optional[Dict[str, str]] = None,
    body: Optional[Dict[str, Any]] = None,
) -> Any:
    # Create SSL context with proper certificates
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)
    timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT)

    try:
        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            async with session.request(method, url, headers=headers, params=params, json=body) as response:
                if 200 <= response.status < 300:
                    return await response.json(content_type=None)
                raise UpstreamError(response.status, await response.text())
    except aiohttp.ClientError as e:
        raise UpstreamError(None, str(e)) from e
    except asyncio.TimeoutError as e:
        raise UpstreamError(None, f"timed out after {config.HTTP_TIMEOUT:g}s") from e


async def call_api(endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """GET a RagAlgo edge function.

    Args:
        endpoint: Path below the functions base URL (e.g. 'news', 'snapshots/STK005930')
        params: Query parameters; ``None`` values are skipped

    Returns:
        The decoded JSON body, untouched
    """
    headers = _edge_headers()
    return await _request("GET", f"{config.API_BASE_URL}/{endpoint}", headers, params=_query_params(params))


async def call_api_post(endpoint: str, body: Dict[str, Any]) -> Any:
    """POST a JSON body to a RagAlgo edge function."""
    headers = _edge_headers()
    return await _request("POST", f"{config.API_BASE_URL}/{endpoint}", headers, body=body)


async def call_rest(table: str, params: Dict[str, Any]) -> Any:
    """GET rows from the public REST interface (anon key only, no API key needed)."""
    return await _request("GET", f"{config.REST_URL}/{table}", _rest_headers(), params=_query_params(params))
