"""Product extractors, platform detection and scraping helpers."""
from typing import List

from .base_extractor import BaseExtractor, ProductExtractor
from .json_ld_extractor import JsonLdExtractor
from .microdata_extractor import MicrodataExtractor
from .open_graph_extractor import OpenGraphExtractor
from .heuristic_extractor import HeuristicExtractor
from .platform_detector import (
    PlatformDetection,
    PlatformDetector,
    get_platform_detector,
)
from .web_scraper_utils import WebScraperUtils


def default_extractors() -> List[ProductExtractor]:
    """The closed set of shipped extractors, highest priority first."""
    return [
        JsonLdExtractor(),
        MicrodataExtractor(),
        OpenGraphExtractor(),
        HeuristicExtractor(),
    ]


__all__ = [
    "BaseExtractor",
    "ProductExtractor",
    "JsonLdExtractor",
    "MicrodataExtractor",
    "OpenGraphExtractor",
    "HeuristicExtractor",
    "PlatformDetection",
    "PlatformDetector",
    "get_platform_detector",
    "WebScraperUtils",
    "default_extractors",
]
