"""Document-to-PDF conversion gateway."""

from .config import AppConfig, load_config
from .engine import ConversionEngine
from .errors import GatewayError
from .models import ConversionOptions, ConversionRequest, ConversionType, Deliverable, InputItem

__all__ = [
    "AppConfig",
    "ConversionEngine",
    "ConversionOptions",
    "ConversionRequest",
    "ConversionType",
    "Deliverable",
    "GatewayError",
    "InputItem",
    "load_config",
]
