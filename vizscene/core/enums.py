from __future__ import annotations

from enum import Enum


class ChartType(str, Enum):
    BAR = "bar"
    SCATTER = "scatter"
    HEATMAP = "heatmap"
    CHOROPLETH = "choropleth"
    NETWORK = "network"
    TREEMAP = "treemap"


class ScaleKind(str, Enum):
    LINEAR = "linear"
    TIME = "time"
    BAND = "band"
    ORDINAL = "ordinal"
    SEQUENTIAL = "sequential"
    QUANTIZE = "quantize"


class SimulationStatus(str, Enum):
    RUNNING = "running"
    SETTLING = "settling"
    STOPPED = "stopped"


class OutputFormat(str, Enum):
    SVG = "svg"
    HTML = "html"
    PNG = "png"
