"""Adapters from the public chart datasets to engine inputs.

Each ``parse_*`` function takes the decoded JSON payload of one source and
returns typed records; ``load_dataset`` fetches the default source(s) for a
chart type and parses them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .core.enums import ChartType
from .core.errors import DataSourceError
from .core.logging_config import get_logger
from .data.fetch import load_json
from .geo.topology import Topology
from .layout.treemap import TreeNode, hierarchy

logger = get_logger(__name__)

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class GdpPoint:
    date: datetime
    label: str
    value: float


@dataclass(frozen=True)
class GdpSeries:
    name: str
    description: str
    from_date: datetime
    to_date: datetime
    points: tuple[GdpPoint, ...]


@dataclass(frozen=True)
class CyclistRecord:
    name: str
    nationality: str
    year: int
    seconds: float
    time: str
    place: int | None = None
    doping: str = ""
    url: str = ""


@dataclass(frozen=True)
class TemperatureRecord:
    year: int
    month: int  # 0 = January
    variance: float
    temp: float


@dataclass(frozen=True)
class TemperatureSeries:
    base_temperature: float
    records: tuple[TemperatureRecord, ...]


@dataclass(frozen=True)
class EducationRecord:
    fips: int
    state: str
    area_name: str
    bachelors_or_higher: float


@dataclass(frozen=True)
class CountyDataset:
    topology: Topology
    education: tuple[EducationRecord, ...]
    regions_key: str = "counties"
    borders_key: str = "states"


# Patent-related lawsuits in the mobile communications industry, circa 2011.
PATENT_SUITS: tuple[dict[str, str], ...] = (
    {"source": "Microsoft", "target": "Amazon", "type": "licensing"},
    {"source": "Microsoft", "target": "HTC", "type": "licensing"},
    {"source": "Samsung", "target": "Apple", "type": "suit"},
    {"source": "Motorola", "target": "Apple", "type": "suit"},
    {"source": "Nokia", "target": "Apple", "type": "resolved"},
    {"source": "HTC", "target": "Apple", "type": "suit"},
    {"source": "Kodak", "target": "Apple", "type": "suit"},
    {"source": "Microsoft", "target": "Barnes & Noble", "type": "suit"},
    {"source": "Microsoft", "target": "Foxconn", "type": "suit"},
    {"source": "Oracle", "target": "Google", "type": "suit"},
    {"source": "Apple", "target": "HTC", "type": "suit"},
    {"source": "Microsoft", "target": "Inventec", "type": "suit"},
    {"source": "Samsung", "target": "Kodak", "type": "resolved"},
    {"source": "LG", "target": "Kodak", "type": "resolved"},
    {"source": "RIM", "target": "Kodak", "type": "suit"},
    {"source": "Sony", "target": "LG", "type": "suit"},
    {"source": "Kodak", "target": "LG", "type": "resolved"},
    {"source": "Apple", "target": "Nokia", "type": "resolved"},
    {"source": "Qualcomm", "target": "Nokia", "type": "resolved"},
    {"source": "Apple", "target": "Motorola", "type": "suit"},
    {"source": "Microsoft", "target": "Motorola", "type": "suit"},
    {"source": "Motorola", "target": "Microsoft", "type": "suit"},
    {"source": "Huawei", "target": "ZTE", "type": "suit"},
    {"source": "Ericsson", "target": "ZTE", "type": "suit"},
    {"source": "Kodak", "target": "Samsung", "type": "resolved"},
    {"source": "Apple", "target": "Samsung", "type": "suit"},
    {"source": "Kodak", "target": "RIM", "type": "suit"},
    {"source": "Nokia", "target": "Qualcomm", "type": "suit"},
)

TREEMAP_SOURCES = {
    "kickstarter": ("Kickstarter Pledges", "Top 100 Most Pledged Kickstarter Campaigns Grouped By Category"),
    "movies": ("Movie Sales", "Top 100 Highest Grossing Movies Grouped By Genre"),
    "video-games": ("Video Game Sales", "Top 100 Most Sold Video Games Grouped by Platform"),
}

DEFAULT_SOURCES: dict[ChartType, str] = {
    ChartType.BAR: "gdp",
    ChartType.SCATTER: "cyclists",
    ChartType.HEATMAP: "temperature",
    ChartType.CHOROPLETH: "education",
    ChartType.TREEMAP: "kickstarter",
}


def _date(value: str) -> datetime:
    return datetime.fromisoformat(value)


def parse_gdp(payload: dict[str, Any]) -> GdpSeries:
    """Quarterly GDP: ``data`` is a list of ``[iso_date, billions]`` pairs."""
    try:
        points = tuple(GdpPoint(_date(d), d, float(v)) for d, v in payload["data"])
        return GdpSeries(
            name=payload.get("name", ""),
            description=payload.get("description", ""),
            from_date=_date(payload["from_date"]),
            to_date=_date(payload["to_date"]),
            points=points,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed GDP dataset: {e}") from e


def parse_cyclists(payload: list[dict[str, Any]]) -> list[CyclistRecord]:
    try:
        return [
            CyclistRecord(
                name=r["Name"],
                nationality=r.get("Nationality", ""),
                year=int(r["Year"]),
                seconds=float(r["Seconds"]),
                time=r.get("Time", ""),
                place=r.get("Place"),
                doping=r.get("Doping", "") or "",
                url=r.get("URL", "") or "",
            )
            for r in payload
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed cyclist dataset: {e}") from e


def parse_temperature(payload: dict[str, Any]) -> TemperatureSeries:
    """Monthly variance records; months are converted to 0-based indexes and
    absolute temperatures rounded to two decimals."""
    try:
        base = float(payload["baseTemperature"])
        records = tuple(
            TemperatureRecord(
                year=int(r["year"]),
                month=int(r["month"]) - 1,
                variance=float(r["variance"]),
                temp=round(base + float(r["variance"]), 2),
            )
            for r in payload["monthlyVariance"]
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed temperature dataset: {e}") from e
    return TemperatureSeries(base_temperature=base, records=records)


def parse_education(payload: list[dict[str, Any]]) -> list[EducationRecord]:
    try:
        return [
            EducationRecord(
                fips=int(r["fips"]),
                state=r.get("state", ""),
                area_name=r.get("area_name", ""),
                bachelors_or_higher=float(r["bachelorsOrHigher"]),
            )
            for r in payload
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed education dataset: {e}") from e


def parse_counties(topology: dict[str, Any], education: list[dict[str, Any]]) -> CountyDataset:
    return CountyDataset(topology=Topology.from_dict(topology), education=tuple(parse_education(education)))


def parse_tree(payload: dict[str, Any]) -> TreeNode:
    """Nested ``{name, children}`` hierarchy with string or numeric leaf values."""
    if not isinstance(payload, dict) or "children" not in payload:
        raise DataSourceError("Malformed hierarchy dataset: root needs 'children'")
    try:
        return hierarchy(payload)
    except (TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed hierarchy dataset: {e}") from e


def parse_links(payload: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not isinstance(payload, list) or any("source" not in r or "target" not in r for r in payload):
        raise DataSourceError("Malformed link dataset: every record needs 'source' and 'target'")
    return [dict(r) for r in payload]


def load_dataset(
    chart_type: ChartType | str,
    source: str | None = None,
    topology_source: str | None = None,
) -> Any:
    """Load and parse the dataset for a chart type.

    Args:
        chart_type: Chart the dataset feeds
        source: Known source name, URL or path (default: the chart's public source)
        topology_source: Choropleth topology (default: the counties topology)

    Returns:
        The parsed dataset in the shape the chart builder expects

    Raises:
        DataSourceError: If a source cannot be loaded or parsed
    """
    chart_type = ChartType(chart_type)
    if chart_type is ChartType.NETWORK:
        return parse_links(load_json(source)) if source else [dict(r) for r in PATENT_SUITS]

    payload = load_json(source or DEFAULT_SOURCES[chart_type])
    logger.info(f"Loaded {chart_type.value} dataset", extra={"source": source or DEFAULT_SOURCES[chart_type]})
    if chart_type is ChartType.BAR:
        return parse_gdp(payload)
    if chart_type is ChartType.SCATTER:
        return parse_cyclists(payload)
    if chart_type is ChartType.HEATMAP:
        return parse_temperature(payload)
    if chart_type is ChartType.CHOROPLETH:
        return parse_counties(load_json(topology_source or "counties"), payload)
    return parse_tree(payload)
