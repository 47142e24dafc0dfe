"""Shared HTTP helpers used by the registry client.

Encapsulates common request/timeout/retry handling so callers avoid
duplicating try/except blocks. This module is dependency-light and can be
imported from registry/* without cycles.
"""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Dict, Optional, Tuple

import requests

from common.cancellation import CancellationToken, check_cancelled
from common.errors import RegistryError
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

logger = logging.getLogger(__name__)

# Simple in-memory cache for HTTP responses
_http_cache: Dict[str, Tuple[Any, float]] = {}


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": Constants.USER_AGENT, "Accept": "application/json"}
    if headers:
        merged.update(headers)
    return merged


def _get_cache_key(method: str, url: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Generate cache key from request parameters."""
    params_str = str(sorted(params.items())) if params else ""
    return f"{method}:{url}:{params_str}"


def _is_cache_valid(cache_entry: Tuple[Any, float]) -> bool:
    """Check if cache entry is still valid."""
    _, cached_time = cache_entry
    return time.time() - cached_time < Constants.HTTP_CACHE_TTL_SEC


def clear_cache() -> None:
    """Drop every cached response."""
    _http_cache.clear()


def robust_get(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    token: Optional[CancellationToken] = None,
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout, retries, and caching with DEBUG traces.

    Returns:
        Tuple of (status_code, headers_dict, body_text). A status of 0 means
        every attempt failed at the transport level; the body then carries
        the last error.
    """
    cache_key = _get_cache_key("GET", url, params)
    safe_target = safe_url(url)

    if cache_key in _http_cache and _is_cache_valid(_http_cache[cache_key]):
        cached_data, _ = _http_cache[cache_key]
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit", component="http_client", action="GET", target=safe_target
                ),
            )
        return cached_data

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        check_cancelled(token)
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1,
                        ),
                    )

                response = requests.get(
                    url,
                    params=params,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_default_headers(headers),
                )

                if response.status_code >= 500:
                    last_exception = f"HTTP {response.status_code}"
                    continue

                cache_data = (response.status_code, dict(response.headers), response.text)
                _http_cache[cache_key] = (cache_data, time.time())

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response ok",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                        ),
                    )
                return cache_data

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target,
                        ),
                    )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target,
                        ),
                    )
                continue

    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    token: Optional[CancellationToken] = None,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response.

    Args:
        url: Target URL
        params: Optional query parameters
        headers: Optional request headers
        token: Optional cancellation token checked before each attempt

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none). On a
        transport failure the status is 0 and the third item is the error text.
    """
    status_code, response_headers, text = robust_get(url, params=params, headers=headers, token=token)

    if status_code == 0:
        return status_code, response_headers, text

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        status_code=status_code,
                        target=safe_url(url),
                    ),
                )
            return status_code, response_headers, None

    return status_code, response_headers, None


def stream_download(url: str, dest_path: str, *, token: Optional[CancellationToken] = None) -> None:
    """Stream ``url`` into ``dest_path``.

    The cancellation token is checked between chunks. A partially written
    file is removed before the error propagates.

    Raises:
        RegistryError: On any transport failure or non-200 status.
        OperationCancelled: When the token fires mid-transfer.
    """
    check_cancelled(token)
    safe_target = safe_url(url)
    with Timer() as t:
        try:
            with requests.get(
                url,
                stream=True,
                timeout=Constants.REQUEST_TIMEOUT,
                headers={"User-Agent": Constants.USER_AGENT},
            ) as response:
                if response.status_code != 200:
                    raise RegistryError(f"Download of {safe_target} failed with HTTP {response.status_code}")
                with open(dest_path, "wb") as fh:
                    for chunk in response.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        check_cancelled(token)
                        if chunk:
                            fh.write(chunk)
        except requests.RequestException as exc:
            _remove_quietly(dest_path)
            raise RegistryError(f"Download of {safe_target} failed: {exc}") from exc
        except BaseException:
            _remove_quietly(dest_path)
            raise

    if is_debug_enabled(logger):
        logger.debug(
            "Download complete",
            extra=extra_context(
                event="download",
                component="http_client",
                outcome="success",
                duration_ms=t.duration_ms(),
                target=safe_target,
            ),
        )


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
