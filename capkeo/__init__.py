"""
CapKeo match client.

`capkeo.client` holds the match-lifecycle cache, `capkeo.shared` the wire models,
and `capkeo.api` a sandbox implementation of the remote match API. Call
`setup_logging(get_settings().log_level)` to see what the stores are doing.
"""

from .config import get_settings
from .logging_config import setup_logging

__version__ = "0.1.0"

__all__ = ["get_settings", "setup_logging"]
