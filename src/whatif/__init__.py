"""What-if backtester package root."""

from whatif.exceptions import (InsufficientDataError, InvalidDateError,
                               NoDataError, ProviderUnavailableError,
                               WhatIfError)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "WhatIfError",
    "InvalidDateError",
    "ProviderUnavailableError",
    "NoDataError",
    "InsufficientDataError",
]
