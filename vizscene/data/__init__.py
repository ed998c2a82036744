from .fetch import KNOWN_SOURCES, fetch_json, load_json, resolve_source

__all__ = ["KNOWN_SOURCES", "fetch_json", "load_json", "resolve_source"]
