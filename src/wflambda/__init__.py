"""
Wavefront Lambda wrapper.

Adapts a handler with any of the supported shapes to a uniform Lambda signature
and reports invocation, error, cold start, duration and memory metrics for every
invocation.
"""

from .agent import WavefrontAgent
from .config import Settings, get_settings
from .context import InvocationContext
from .errors import (
    HandlerSignatureError,
    PayloadDecodeError,
    TransportError,
    WavefrontLambdaError,
)
from .sender import EmfSender, MetricSender, WavefrontSender
from .wrapper import HandlerWrapper, wrap_handler

__all__ = [
    "EmfSender",
    "HandlerSignatureError",
    "HandlerWrapper",
    "InvocationContext",
    "MetricSender",
    "PayloadDecodeError",
    "Settings",
    "TransportError",
    "WavefrontAgent",
    "WavefrontLambdaError",
    "WavefrontSender",
    "get_settings",
    "wrap_handler",
]
