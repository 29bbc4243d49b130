from __future__ import annotations

__all__ = [
    "LinkExtractor",
    "collect_anchors",
    "collect_definitions",
    "collect_heading_titles",
    "collect_html_anchors",
    "extract_links",
    "load_manifest",
    "normalize_label",
    "parse_manifest",
]

# Re-export primary functions from submodules (explicit alias marks intent for linters)
from .links import LinkExtractor as LinkExtractor
from .links import collect_anchors as collect_anchors
from .links import collect_definitions as collect_definitions
from .links import collect_heading_titles as collect_heading_titles
from .links import collect_html_anchors as collect_html_anchors
from .links import extract_links as extract_links
from .links import normalize_label as normalize_label
from .manifest import load_manifest as load_manifest
from .manifest import parse_manifest as parse_manifest
