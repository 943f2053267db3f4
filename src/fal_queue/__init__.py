from .client import FalClient, configure, default_client
from .config import ClientConfig
from .errors import (
    ConfigurationError,
    DecodeError,
    FalError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from .model import Model
from .price import Price, Unit
from .price_estimate import Endpoint, EstimateType, PriceEstimate
from .request import Request, Status
from .sse import SSEDecoder, SSEvent
from .stream import Stream
from .webhook import WebhookRequest

__all__ = [
    "FalClient",
    "ClientConfig",
    "configure",
    "default_client",
    "Request",
    "Status",
    "Stream",
    "SSEDecoder",
    "SSEvent",
    "Model",
    "Price",
    "Unit",
    "PriceEstimate",
    "EstimateType",
    "Endpoint",
    "WebhookRequest",
    "FalError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "DecodeError",
    "TransportError",
    "ConfigurationError",
]
