"""Invocation identity and point tags derived from the Lambda context."""

import inspect
import os
import types
import typing
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union, runtime_checkable

from .monitoring import logger

CONTEXT_ATTRIBUTES = ("function_name", "function_version", "invoked_function_arn")


@runtime_checkable
class InvocationContext(Protocol):
    """What the wrapper needs from the Lambda runtime's context object."""

    function_name: str
    function_version: str
    invoked_function_arn: str


@dataclass(frozen=True)
class FunctionArn:
    """
    Parsed Lambda ARN.

    Expected formats are described in
    https://docs.aws.amazon.com/general/latest/gr/aws-arns-and-namespaces.html#arn-syntax-lambda
    e.g. ``arn:aws:lambda:us-west-2:123456789012:function:my-func:3``.
    """

    arn: str
    partition: str = ""
    service: str = ""
    region: str = ""
    account_id: str = ""
    resource_type: str = ""
    resource_name: str = ""
    qualifier: Optional[str] = None

    @classmethod
    def parse(cls, arn: str) -> "FunctionArn":
        """Split an ARN on ``:``; missing segments are left empty."""
        parts = arn.split(":") if arn else []
        if arn and len(parts) < 7:
            logger.warning(f"Unexpected Lambda ARN format: {arn!r}")

        def part(i: int) -> str:
            return parts[i] if len(parts) > i else ""

        return cls(
            arn=arn,
            partition=part(1),
            service=part(2),
            region=part(3),
            account_id=part(4),
            resource_type=part(5),
            resource_name=part(6),
            qualifier=parts[7] if len(parts) == 8 else None,
        )

    def resource_tags(self) -> dict[str, str]:
        """Tag naming the invoked function (and qualifier) or event source mapping."""
        if self.resource_type == "function":
            resource = self.resource_name
            if self.qualifier is not None:
                resource += f":{self.qualifier}"
            return {"Resource": resource}
        if self.resource_type == "event-source-mappings":
            return {"EventSourceMappings": self.resource_name}
        return {}


@dataclass(frozen=True)
class InvocationIdentity:
    """Who is being invoked, resolved at the start of each invocation."""

    function_name: str
    function_version: str
    arn: FunctionArn
    cold_start: bool = False

    @classmethod
    def from_context(cls, context: Any, cold_start: bool = False) -> "InvocationIdentity":
        """Read identity from the context, falling back to the Lambda environment."""
        function_name = getattr(context, "function_name", None) or os.environ.get(
            "AWS_LAMBDA_FUNCTION_NAME", ""
        )
        function_version = getattr(context, "function_version", None) or os.environ.get(
            "AWS_LAMBDA_FUNCTION_VERSION", ""
        )
        invoked_arn = getattr(context, "invoked_function_arn", None) or ""
        return cls(
            function_name=function_name,
            function_version=function_version,
            arn=FunctionArn.parse(invoked_arn),
            cold_start=cold_start,
        )

    def point_tags(self, static_tags: Optional[dict[str, str]] = None) -> dict[str, str]:
        """Build a fresh tag set: static tags overlaid with identity tags."""
        tags = dict(static_tags or {})
        tags.update(
            {
                "LambdaArn": self.arn.arn,
                "source": self.function_name,
                "FunctionName": self.function_name,
                "ExecutedVersion": self.function_version,
                "Region": self.arn.region,
                "accountId": self.arn.account_id,
            }
        )
        tags.update(self.arn.resource_tags())
        return tags


def is_context_type(annotation: Any) -> bool:
    """Whether a parameter annotation describes a Lambda context, possibly Optional."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        return len(members) == 1 and is_context_type(members[0])
    if not isinstance(annotation, type):
        return False

    declared = {
        name for cls in annotation.__mro__ for name in inspect.get_annotations(cls)
    }
    return all(
        attr in declared or hasattr(annotation, attr) for attr in CONTEXT_ATTRIBUTES
    )
