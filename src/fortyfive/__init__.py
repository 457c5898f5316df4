"""fortyfive: 45-minute strength program generator and workout tracker."""

__version__ = "0.3.0"
