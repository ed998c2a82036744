"""Dataset loading from local files, URLs or named public sources."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import requests

from ..core.config import get_settings
from ..core.errors import DataSourceError
from ..core.logging_config import get_logger

logger = get_logger(__name__)

KNOWN_SOURCES: dict[str, str] = {
    "gdp": "https://raw.githubusercontent.com/freeCodeCamp/ProjectReferenceData/master/GDP-data.json",
    "cyclists": "https://raw.githubusercontent.com/freeCodeCamp/ProjectReferenceData/master/cyclist-data.json",
    "temperature": "https://raw.githubusercontent.com/freeCodeCamp/ProjectReferenceData/master/global-temperature.json",
    "counties": "https://cdn.freecodecamp.org/testable-projects-fcc/data/choropleth_map/counties.json",
    "education": "https://cdn.freecodecamp.org/testable-projects-fcc/data/choropleth_map/for_user_education.json",
    "kickstarter": "https://cdn.freecodecamp.org/testable-projects-fcc/data/tree_map/kickstarter-funding-data.json",
    "movies": "https://cdn.freecodecamp.org/testable-projects-fcc/data/tree_map/movie-data.json",
    "video-games": "https://cdn.freecodecamp.org/testable-projects-fcc/data/tree_map/video-game-sales-data.json",
}


def resolve_source(source: str) -> str:
    """Map a known source name to its URL; anything else is returned unchanged."""
    return KNOWN_SOURCES.get(source, source)


def fetch_json(url: str, timeout: float | None = None) -> Any:
    """GET a URL and parse the JSON body.

    Args:
        url: HTTP(S) URL
        timeout: Request timeout in seconds (default: VIZ_HTTP_TIMEOUT)

    Returns:
        Parsed JSON payload

    Raises:
        DataSourceError: On network failure, non-200 status or invalid JSON
    """
    timeout = timeout if timeout is not None else get_settings().http_timeout
    logger.info(f"Fetching dataset from {url}", extra={"url": url, "timeout": timeout})
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise DataSourceError(f"Failed to fetch {url}: {e}") from e
    if resp.status_code != 200:
        raise DataSourceError(f"Fetching {url} returned HTTP {resp.status_code}: {resp.text[:200]}")
    try:
        return resp.json()
    except ValueError as e:
        raise DataSourceError(f"Response from {url} is not valid JSON") from e


def load_json(source: str | Path, timeout: float | None = None) -> Any:
    """Load a JSON dataset from a known source name, URL or file path.

    Raises:
        DataSourceError: If the source cannot be read or parsed
    """
    text = resolve_source(str(source))
    if text.startswith(("http://", "https://")):
        return fetch_json(text, timeout)

    path = Path(text)
    if not path.exists():
        raise DataSourceError(f"Dataset not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataSourceError(f"Could not read dataset {path}: {e}") from e
    logger.debug("Loaded dataset file", extra={"path": str(path)})
    return data
