"""OpenAI-compatible streaming proxy that cuts the stream at a sponsor marker."""

__version__ = "1.0.2"

from .config import load_config
from .api import app
from .relay import MarkerFilter, filter_chunks, relay_chat_completion
from .upstream import open_upstream
