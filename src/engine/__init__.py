"""Transfer engines driven by the easy handle."""

from src.engine.httpx_engine import EngineConfigError, HttpxEngine
from src.engine.protocols import TransferEngine


__all__ = [
    "EngineConfigError",
    "HttpxEngine",
    "TransferEngine",
]
