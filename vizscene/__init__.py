"""vizscene - scale, layout and interaction engine for statistical and geographic charts."""

__version__ = "0.1.0"
