"""Validation of the shapes a handler may take.

A valid handler takes at most two positional arguments; when it takes two, the
first one must be the Lambda context. Its return annotation declares at most two
values; when it declares two, the second must be an error, and a single declared
value must be an error. An unannotated return is treated as a plain result.
Detailed information on the equivalent Lambda handler signatures can be found at
https://docs.aws.amazon.com/lambda/latest/dg/go-programming-model-handler-types.html
"""

import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .context import is_context_type
from .errors import HandlerSignatureError
from .monitoring import logger

_CONTEXT_NAMES = ("context", "ctx")
_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True)
class HandlerDescriptor:
    """Shape of a validated handler, derived once at wrap time."""

    arg_count: int
    takes_context: bool
    payload_type: Any
    return_arity: int
    returns_error: bool

    @property
    def takes_payload(self) -> bool:
        """Whether the handler expects a decoded payload argument."""
        return self.arg_count == 2 or (self.arg_count == 1 and not self.takes_context)

    @property
    def returns_result(self) -> bool:
        """Whether the first returned value is the response."""
        return self.return_arity == 2 or (
            self.return_arity == 1 and not self.returns_error
        )


def _namespaces(handler: Callable) -> tuple[dict, dict]:
    """Globals and closure variables a handler's string annotations may refer to."""
    func = inspect.unwrap(getattr(handler, "__func__", handler))
    if not inspect.isfunction(func):
        call = getattr(type(handler), "__call__", None)
        func = inspect.unwrap(getattr(call, "__func__", call))
    if not inspect.isfunction(func):
        return {}, {}
    return func.__globals__, dict(inspect.getclosurevars(func).nonlocals)


def _resolve(annotation: Any, namespaces: tuple[dict, dict]) -> Any:
    """Evaluate a postponed annotation; an unresolvable one stays a string."""
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, *namespaces)
    except (NameError, AttributeError, SyntaxError, TypeError) as e:
        logger.warning(f"Cannot resolve handler annotation {annotation!r}: {e}")
        return annotation


def _signature(handler: Callable) -> inspect.Signature:
    if not callable(handler):
        raise HandlerSignatureError(
            f"handler kind {type(handler).__name__} is not callable"
        )
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError) as e:
        raise HandlerSignatureError(f"cannot inspect handler: {e}") from e

    namespaces = _namespaces(handler)
    return signature.replace(
        parameters=[
            p.replace(annotation=_resolve(p.annotation, namespaces))
            for p in signature.parameters.values()
        ],
        return_annotation=_resolve(signature.return_annotation, namespaces),
    )


def _arguments(signature: inspect.Signature) -> list[inspect.Parameter]:
    arguments = []
    for parameter in signature.parameters.values():
        if parameter.kind in _POSITIONAL:
            arguments.append(parameter)
        elif (
            parameter.kind == inspect.Parameter.KEYWORD_ONLY
            and parameter.default is inspect.Parameter.empty
        ):
            raise HandlerSignatureError(
                f"handler takes required keyword-only argument {parameter.name!r}"
            )
    return arguments


def _is_context(parameter: inspect.Parameter) -> bool:
    if parameter.annotation is inspect.Parameter.empty or isinstance(
        parameter.annotation, str
    ):
        return parameter.name in _CONTEXT_NAMES
    return is_context_type(parameter.annotation)


def is_error_type(annotation: Any) -> bool:
    """Whether an annotation describes an error value (an exception, maybe None)."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        return bool(members) and all(is_error_type(a) for a in members)
    return isinstance(annotation, type) and issubclass(annotation, BaseException)


def validate_arguments(handler: Callable) -> bool:
    """
    Check the handler's arguments.

    Returns whether the handler takes a context argument. Raises
    HandlerSignatureError when the arguments are not valid.
    """
    return _validate_arguments(_arguments(_signature(handler)))


def _validate_arguments(arguments: list[inspect.Parameter]) -> bool:
    if len(arguments) > 2:
        raise HandlerSignatureError(
            "handlers may not take more than two arguments, "
            f"but handler takes {len(arguments)}"
        )
    if not arguments:
        return False

    takes_context = _is_context(arguments[0])
    if len(arguments) > 1 and not takes_context:
        raise HandlerSignatureError(
            "handler takes two arguments, but the first is not Context. "
            f"got {arguments[0].name!r}"
        )
    return takes_context


def _return_shape(annotation: Any) -> tuple[int, bool]:
    if isinstance(annotation, str):
        raise HandlerSignatureError(
            f"cannot resolve handler return annotation {annotation!r}"
        )
    if annotation is inspect.Signature.empty or annotation is Any:
        return 1, False
    if annotation is None or annotation is type(None):
        return 0, False

    if typing.get_origin(annotation) is tuple:
        values = typing.get_args(annotation)
        if Ellipsis in values or len(values) > 2:
            raise HandlerSignatureError("handler may not return more than two values")
        if len(values) == 2:
            if not is_error_type(values[1]):
                raise HandlerSignatureError(
                    "handler returns two values, but the second does not implement error"
                )
            return 2, True
        if len(values) == 1:
            annotation = values[0]
        else:
            return 0, False

    if not is_error_type(annotation):
        raise HandlerSignatureError(
            "handler returns a single value, but it does not implement error"
        )
    return 1, True


def validate_returns(handler: Callable) -> None:
    """Check the handler's return annotation, raising HandlerSignatureError if invalid."""
    _return_shape(_signature(handler).return_annotation)


def describe_handler(handler: Optional[Callable]) -> HandlerDescriptor:
    """Validate a handler and describe its shape."""
    if handler is None:
        raise HandlerSignatureError("handler is nil")

    signature = _signature(handler)
    arguments = _arguments(signature)
    takes_context = _validate_arguments(arguments)
    return_arity, returns_error = _return_shape(signature.return_annotation)

    payload_type = None
    if len(arguments) == 2 or (len(arguments) == 1 and not takes_context):
        payload_type = arguments[-1].annotation
        if payload_type is inspect.Parameter.empty or isinstance(payload_type, str):
            payload_type = Any

    return HandlerDescriptor(
        arg_count=len(arguments),
        takes_context=takes_context,
        payload_type=payload_type,
        return_arity=return_arity,
        returns_error=returns_error,
    )
