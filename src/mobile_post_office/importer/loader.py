"""
Load the raw record list of a batch import from a URL or a local JSON file.

Feeds wrap their records in different ways; `extract_records()` accepts:

    [ {...}, ... ]                         bare array
    {"data": [ ... ]}                      data envelope
    {"records": [ ... ]}                   records envelope
    {"anything": [ ... ], ...}             first array-valued property
"""

import json
import logging
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class SourceLoadError(RuntimeError):
    """The data source could not be read or holds no record array. Fatal for the import."""


class MissingSourceError(SourceLoadError):
    """No data source was given."""


def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def extract_records(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "records"):
            if isinstance(payload.get(key), list):
                return payload[key]
        for value in payload.values():
            if isinstance(value, list):
                return value
    raise SourceLoadError("Unable to find array of records in payload")


async def fetch_url(url: str, *, timeout: float = 30.0, client: httpx.AsyncClient | None = None) -> Any:
    """GET `url` and decode its JSON body. `client` is injectable for tests."""
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.TimeoutException as exc:
        raise SourceLoadError(f"Timed out fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        raise SourceLoadError(f"{url} returned HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise SourceLoadError(f"Unable to fetch {url}: {exc}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise SourceLoadError(f"{url} did not return valid JSON") from exc


def read_file(path: str | Path) -> Any:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SourceLoadError(f"Unable to read file: {path} ({exc.strerror or exc})") from exc
    except UnicodeDecodeError as exc:
        raise SourceLoadError(f"Unable to read file: {path} (not valid UTF-8)") from exc

    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise SourceLoadError(f"Invalid JSON in {path}: {exc.msg} (line {exc.lineno})") from exc


async def load_records(
    source: str | None,
    *,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> list[Any]:
    """
    Load the record list for a batch import.

    Raises:
        MissingSourceError: `source` is empty
        SourceLoadError: unreachable URL, unreadable file, invalid JSON or no record array
    """
    if not source:
        raise MissingSourceError("No data source provided")

    if is_url(source):
        logger.info("importer.load.fetch", extra={"source": source})
        payload = await fetch_url(source, timeout=timeout, client=client)
    else:
        logger.info("importer.load.file", extra={"source": source})
        payload = read_file(source)

    records = extract_records(payload)
    logger.info("importer.load.done", extra={"source": source, "records": len(records)})
    return records
