"""Exceptions raised by wflambda."""


class WavefrontLambdaError(Exception):
    """Base class for wflambda errors."""


class HandlerSignatureError(WavefrontLambdaError):
    """The wrapped handler does not have a supported shape."""


class PayloadDecodeError(WavefrontLambdaError):
    """The invocation payload could not be decoded into the handler's argument type."""


class TransportError(WavefrontLambdaError):
    """A metric could not be sent, flushed or closed."""
