"""Tests for handler shape validation."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

import pytest
from aws_lambda_powertools.utilities.typing import LambdaContext
from utils import FakeLambdaContext

from wflambda.adapter import new_handler
from wflambda.context import InvocationContext
from wflambda.errors import HandlerSignatureError
from wflambda.signature import (
    describe_handler,
    is_error_type,
    validate_arguments,
    validate_returns,
)


def test_too_many_arguments():
    """Handlers may take at most two arguments."""

    def handler(context, event, extra):
        pass

    with pytest.raises(HandlerSignatureError, match="more than two arguments"):
        validate_arguments(handler)


def test_two_arguments_first_must_be_context():
    """With two arguments, the first one must be the context."""

    def handler(event: dict, other: dict):
        pass

    with pytest.raises(HandlerSignatureError, match="first is not Context"):
        validate_arguments(handler)


@pytest.mark.parametrize(
    "annotation", [LambdaContext, FakeLambdaContext, InvocationContext]
)
def test_context_annotations(annotation):
    """Any class exposing the invocation identity counts as a context."""

    def handler(context, event: dict):
        pass

    handler.__annotations__["context"] = annotation
    assert validate_arguments(handler) is True


def test_unannotated_context_by_name():
    """An unannotated first argument named context or ctx is the context."""

    def handler(ctx, event):
        pass

    assert validate_arguments(handler) is True


def test_single_argument_is_payload():
    """A single non-context argument is the payload."""

    def handler(event: dict):
        pass

    assert validate_arguments(handler) is False
    descriptor = describe_handler(handler)
    assert descriptor.takes_payload
    assert descriptor.payload_type is dict


def test_single_context_argument():
    """A single context argument means no payload."""

    def handler(context: LambdaContext):
        pass

    descriptor = describe_handler(handler)
    assert descriptor.takes_context
    assert not descriptor.takes_payload
    assert descriptor.payload_type is None


def test_no_arguments():
    """Handlers may take nothing at all."""

    def handler() -> None:
        pass

    descriptor = describe_handler(handler)
    assert descriptor.arg_count == 0
    assert not descriptor.takes_context
    assert not descriptor.takes_payload


def test_required_keyword_only_argument():
    """Keyword-only arguments cannot be supplied by the wrapper."""

    def handler(event, *, verbose):
        pass

    with pytest.raises(HandlerSignatureError, match="keyword-only"):
        validate_arguments(handler)


def test_bound_method():
    """``self`` is not counted as an argument."""

    class Service:
        def handle(self, context: FakeLambdaContext, event: dict) -> None:
            pass

    descriptor = describe_handler(Service().handle)
    assert descriptor.arg_count == 2
    assert descriptor.takes_context


def test_unannotated_payload_is_any():
    """A payload without annotation is decoded as plain JSON."""

    def handler(context, event):
        return event

    assert describe_handler(handler).payload_type is Any


@pytest.mark.parametrize(
    "annotation, match",
    [
        (Tuple[dict, str, Exception], "more than two values"),
        (Tuple[dict, ...], "more than two values"),
        (Tuple[dict, str], "second does not implement error"),
        (int, "single value, but it does not implement error"),
        (Optional[dict], "single value, but it does not implement error"),
    ],
)
def test_invalid_returns(annotation, match):
    """Invalid return annotations are rejected."""

    def handler(event):
        pass

    handler.__annotations__["return"] = annotation
    with pytest.raises(HandlerSignatureError, match=match):
        validate_returns(handler)


@pytest.mark.parametrize(
    "annotation, arity, returns_error, returns_result",
    [
        (None, 0, False, False),
        (Exception, 1, True, False),
        (Optional[ValueError], 1, True, False),
        (Tuple[dict, Optional[Exception]], 2, True, True),
        (tuple[dict, Exception | None], 2, True, True),
        (Any, 1, False, True),
    ],
)
def test_valid_returns(annotation, arity, returns_error, returns_result):
    """Supported return annotations and how they are read."""

    def handler(event):
        pass

    handler.__annotations__["return"] = annotation
    validate_returns(handler)
    descriptor = describe_handler(handler)
    assert descriptor.return_arity == arity
    assert descriptor.returns_error is returns_error
    assert descriptor.returns_result is returns_result


def test_unannotated_return_is_result():
    """Without a return annotation the return value is the response."""

    def handler(event):
        return event

    descriptor = describe_handler(handler)
    assert descriptor.returns_result
    assert not descriptor.returns_error


def test_nil_handler():
    """Describing no handler fails."""
    with pytest.raises(HandlerSignatureError, match="handler is nil"):
        describe_handler(None)


def test_not_callable():
    """Only callables can be handlers."""
    with pytest.raises(HandlerSignatureError, match="handler kind int is not callable"):
        describe_handler(42)


@pytest.mark.parametrize(
    "annotation, expected",
    [
        (Exception, True),
        (KeyError, True),
        (Optional[Exception], True),
        (ValueError | TypeError | None, True),
        (str, False),
        (Optional[str], False),
        (None, False),
    ],
)
def test_is_error_type(annotation, expected):
    """Error-like annotations."""
    assert is_error_type(annotation) is expected


def test_context_dataclass_without_defaults():
    """Dataclass fields without defaults are found through their annotations."""

    @dataclass
    class RuntimeContext:
        function_name: str
        function_version: str
        invoked_function_arn: str

    def handler(context: RuntimeContext, event: dict):
        pass

    assert validate_arguments(handler) is True


@pytest.mark.parametrize(
    "annotation", [Optional[LambdaContext], Union[None, FakeLambdaContext]]
)
def test_optional_context(annotation):
    """An optional context is still a context."""

    def handler(context, event: dict):
        pass

    handler.__annotations__["context"] = annotation
    assert validate_arguments(handler) is True


def test_optional_of_two_types_is_not_context():
    """A union of a context and something else is not a context."""

    def handler(context: Union[LambdaContext, dict], event: dict):
        pass

    with pytest.raises(HandlerSignatureError, match="first is not Context"):
        validate_arguments(handler)


def test_unresolvable_string_annotations_degrade_per_annotation():
    """Annotations that cannot be evaluated do not invalidate the rest."""

    def handler(
        context: "MissingContext", order: "MissingOrder"  # noqa: F821
    ) -> "Tuple[dict, Optional[Exception]]":
        return order, None

    descriptor = describe_handler(handler)
    assert descriptor.takes_context
    assert descriptor.payload_type is Any
    assert (descriptor.return_arity, descriptor.returns_error) == (2, True)
    assert new_handler(handler)(None, {"id": 7}) == ({"id": 7}, None)


def test_unresolvable_string_first_argument_not_named_context():
    """An unresolved first annotation falls back to the parameter name."""

    def handler(event: "MissingEvent", other: dict):  # noqa: F821
        pass

    with pytest.raises(HandlerSignatureError, match="first is not Context"):
        validate_arguments(handler)
