"""corecare — heart-rate analytics and reporting for a personal health tracker."""

__version__ = "0.1.0"
