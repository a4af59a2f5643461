"""Test helpers."""

from dataclasses import dataclass
from typing import Optional

FUNCTION_ARN = "arn:aws:lambda:us-west-2:123456789012:function:my-func:3"


@dataclass
class FakeLambdaContext:
    """Stand-in for the context object the Lambda runtime passes to handlers."""

    function_name: str = "my-func"
    function_version: str = "3"
    invoked_function_arn: str = FUNCTION_ARN
    memory_limit_in_mb: int = 128
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


class RecordingSender:
    """Sender that records every call in order."""

    def __init__(self):
        self.calls = []

    def send_metric(self, name, value, timestamp, source, tags):
        self.calls.append(("metric", name, value, source, dict(tags)))

    def send_delta_counter(self, name, value, source, tags):
        self.calls.append(("delta", name, value, source, dict(tags)))

    def flush(self):
        self.calls.append(("flush",))

    def close(self):
        self.calls.append(("close",))

    def deltas(self, name: str) -> list:
        """Values sent for a delta counter, in order."""
        return [c[2] for c in self.calls if c[0] == "delta" and c[1] == name]

    def metrics(self, name: Optional[str] = None) -> list:
        """Metric calls, optionally filtered by name."""
        return [
            c for c in self.calls if c[0] == "metric" and (name is None or c[1] == name)
        ]

    def names(self) -> list:
        """Names of the calls, with flush and close as their own entries."""
        return [c[1] if len(c) > 1 else c[0] for c in self.calls]
