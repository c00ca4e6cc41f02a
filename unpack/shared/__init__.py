# Shared errors, logging and request correlation
from .errors import ErrorCode, UnpackError
from .correlation import CorrelationMiddleware, get_correlation_id

__all__ = [
    "ErrorCode",
    "UnpackError",
    "CorrelationMiddleware",
    "get_correlation_id",
]
