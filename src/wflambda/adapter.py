"""Adapt a validated handler to the uniform ``(context, payload)`` signature."""

import json
from typing import Any, Callable, Optional

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from .errors import HandlerSignatureError, PayloadDecodeError
from .signature import HandlerDescriptor, describe_handler

# (context, payload) -> (response, error)
LambdaHandler = Callable[[Any, Any], tuple[Any, Optional[BaseException]]]


def error_handler(error: BaseException) -> LambdaHandler:
    """Return a handler that fails every invocation with ``error``."""

    def handler(context: Any, payload: Any) -> tuple[Any, Optional[BaseException]]:
        return None, error

    return handler


def decode_payload(payload: Any, adapter: TypeAdapter) -> Any:
    """Convert a generic payload into the handler's argument type via JSON."""
    try:
        payload_json = json.dumps(payload)
    except (TypeError, ValueError) as e:
        raise PayloadDecodeError(f"payload is not JSON serializable: {e}") from e
    try:
        return adapter.validate_json(payload_json)
    except ValidationError as e:
        raise PayloadDecodeError(
            f"payload does not match the handler argument type: {e}"
        ) from e


def normalize_response(
    descriptor: HandlerDescriptor, value: Any
) -> tuple[Any, Optional[BaseException]]:
    """Convert what the handler returned into ``(response, error)``."""
    if descriptor.return_arity == 0:
        return None, None

    if descriptor.return_arity == 2:
        if not isinstance(value, tuple) or len(value) != 2:
            return None, HandlerSignatureError(
                f"handler declared two return values, but returned {type(value).__name__}"
            )
        response, err = value
    elif descriptor.returns_error:
        response, err = None, value
    else:
        return value, None

    if err is not None and not isinstance(err, BaseException):
        return None, HandlerSignatureError(
            f"handler returned {type(err).__name__} where an error was declared"
        )
    return response, err


def new_handler(handler: Optional[Callable]) -> LambdaHandler:
    """
    Create the base handler, which decodes the payload before deferring to ``handler``.

    If ``handler`` is not a valid handler, the returned function just reports the
    validation error on every invocation.
    """
    try:
        descriptor = describe_handler(handler)
    except HandlerSignatureError as e:
        return error_handler(e)

    payload_adapter = None
    if descriptor.takes_payload:
        try:
            payload_adapter = TypeAdapter(descriptor.payload_type)
        except PydanticUserError as e:
            error = HandlerSignatureError(
                f"handler argument type {descriptor.payload_type!r} cannot be decoded from JSON"
            )
            error.__cause__ = e
            return error_handler(error)

    def wrapped(context: Any, payload: Any) -> tuple[Any, Optional[BaseException]]:
        args = []
        if descriptor.takes_context:
            args.append(context)

        if payload_adapter is not None:
            try:
                args.append(decode_payload(payload, payload_adapter))
            except PayloadDecodeError as e:
                return None, e

        return normalize_response(descriptor, handler(*args))

    return wrapped
