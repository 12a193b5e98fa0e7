"""Price data acquisition: sources, cache and the series provider."""

from whatif.data.cache import CacheKey, NullSeriesCache, SeriesCache
from whatif.data.provider import SeriesProvider, normalize_rows
from whatif.data.sources import (CSVPriceSource, PriceSource,
                                 YahooPriceSource, resolve_price_source)

__all__ = [
    "CacheKey",
    "SeriesCache",
    "NullSeriesCache",
    "SeriesProvider",
    "normalize_rows",
    "PriceSource",
    "YahooPriceSource",
    "CSVPriceSource",
    "resolve_price_source",
]
