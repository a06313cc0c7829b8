from .dispatcher import StreamableHTTPDispatcher
from .stdio import run_stdio

__all__ = ["StreamableHTTPDispatcher", "run_stdio"]
