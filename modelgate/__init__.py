"""ModelGate: provider-agnostic connection testing and model discovery."""

from modelgate.client import AsyncModelGateClient, ModelGateClient
from modelgate.exceptions import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    BadRequestError,
    InternalServerError,
    ModelGateError,
    NotFoundError,
    RateLimitError,
    UnprocessableEntityError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ModelGateClient",
    "AsyncModelGateClient",
    "ModelGateError",
    "APIError",
    "APIStatusError",
    "APIConnectionError",
    "APITimeoutError",
    "BadRequestError",
    "InternalServerError",
    "NotFoundError",
    "RateLimitError",
    "UnprocessableEntityError",
]
