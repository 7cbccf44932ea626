"""Cross-cutting infrastructure"""
from .logging import configure_logging, get_tx_logger, setup_standard_logging_intercept

__all__ = ["configure_logging", "get_tx_logger", "setup_standard_logging_intercept"]
