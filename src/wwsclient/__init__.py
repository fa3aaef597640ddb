# wwsclient package
# Client for the Winston wave server protocol

__version__ = "1.0.0"

from .client import WWSClient
from .config import ClientConfig
from .core.events import EventEmitter
from .models import Scnl, TimeSpan, Wave, HelicorderData, RSAMData, Channel

__all__ = [
    "WWSClient",
    "ClientConfig",
    "EventEmitter",
    "Scnl",
    "TimeSpan",
    "Wave",
    "HelicorderData",
    "RSAMData",
    "Channel",
]
