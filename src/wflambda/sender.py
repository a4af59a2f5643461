"""Metric transports."""

import math
import threading
from dataclasses import dataclass, field
from itertools import groupby
from typing import TYPE_CHECKING, Optional, Protocol

from aws_lambda_powertools.metrics import EphemeralMetrics, MetricUnit
from aws_lambda_powertools.metrics.exceptions import (
    MetricUnitError,
    MetricValueError,
    SchemaValidationError,
)

from wavefront_sdk.client import WavefrontClient

from .errors import TransportError
from .monitoring import logger

if TYPE_CHECKING:
    from .config import Settings

# CloudWatch accepts at most 30 dimensions per metric, one is left for service
MAX_DIMENSIONS = 29

UNITS = {
    "aws.lambda.wf.duration": MetricUnit.Milliseconds,
    "aws.lambda.wf.mem.total": MetricUnit.Megabytes,
    "aws.lambda.wf.mem.used": MetricUnit.Megabytes,
    "aws.lambda.wf.mem.percentage": MetricUnit.Percent,
}


class MetricSender(Protocol):
    """Transport used by the handler wrapper. Failures raise TransportError."""

    def send_metric(
        self,
        name: str,
        value: float,
        timestamp: Optional[int],
        source: str,
        tags: dict[str, str],
    ) -> None:
        """Send a point-in-time measurement."""
        ...

    def send_delta_counter(
        self, name: str, value: float, source: str, tags: dict[str, str]
    ) -> None:
        """Send the increment of a counter since its previous emission."""
        ...

    def flush(self) -> None:
        """Ship everything buffered so far."""
        ...

    def close(self) -> None:
        """Release the transport; it must stay usable for the next invocation."""
        ...


@dataclass(frozen=True)
class Point:
    """One buffered measurement."""

    name: str
    value: float
    unit: MetricUnit
    source: str
    tags: tuple[tuple[str, str], ...]
    timestamp: Optional[int] = None


def _check_value(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TransportError(f"metric {name!r} has non-numeric value {value!r}")
    if not math.isfinite(value):
        raise TransportError(f"metric {name!r} has non-finite value {value!r}")
    return value


def _tag_items(tags: dict[str, str]) -> tuple[tuple[str, str], ...]:
    items = tuple(sorted((str(k), str(v)) for k, v in tags.items() if v != ""))
    if len(items) > MAX_DIMENSIONS:
        logger.warning(
            f"Dropping {len(items) - MAX_DIMENSIONS} tags over the dimension limit"
        )
        items = items[:MAX_DIMENSIONS]
    return items


def _non_empty(tags: dict[str, str]) -> dict[str, str]:
    # the SDK rejects points carrying blank tag values
    return {str(k): str(v) for k, v in tags.items() if v != ""}


@dataclass
class EmfSender:
    """
    Buffer points and print them as CloudWatch Embedded Metric Format on flush.

    Points sharing a tag set are written as one EMF document, with the tags as
    dimensions.
    """

    namespace: str = "wavefront-lambda"
    _buffer: list[Point] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _append(self, point: Point) -> None:
        with self._lock:
            self._buffer.append(point)

    def send_metric(
        self,
        name: str,
        value: float,
        timestamp: Optional[int],
        source: str,
        tags: dict[str, str],
    ) -> None:
        """Buffer a measurement."""
        self._append(
            Point(
                name=name,
                value=_check_value(name, value),
                unit=UNITS.get(name, MetricUnit.NoUnit),
                source=source,
                tags=_tag_items(tags),
                timestamp=timestamp,
            )
        )

    def send_delta_counter(
        self, name: str, value: float, source: str, tags: dict[str, str]
    ) -> None:
        """Buffer a counter increment."""
        self._append(
            Point(
                name=name,
                value=_check_value(name, value),
                unit=MetricUnit.Count,
                source=source,
                tags=_tag_items(tags),
            )
        )

    @property
    def pending(self) -> int:
        """Number of buffered points."""
        return len(self._buffer)

    def flush(self) -> None:
        """Print one EMF document per tag set. The buffer is emptied even on failure."""
        with self._lock:
            points, self._buffer = self._buffer, []

        failures = []
        for tags, group in groupby(sorted(points, key=lambda p: p.tags), lambda p: p.tags):
            metrics = EphemeralMetrics(namespace=self.namespace)
            try:
                for key, value in tags:
                    metrics.add_dimension(name=key, value=value)
                for point in group:
                    metrics.add_metric(name=point.name, unit=point.unit, value=point.value)
                metrics.flush_metrics()
            except (MetricUnitError, MetricValueError, SchemaValidationError) as e:
                metrics.clear_metrics()
                failures.append(str(e))

        if failures:
            raise TransportError(f"failed to flush metrics: {'; '.join(failures)}")

    def close(self) -> None:
        """Flush whatever is left."""
        if self._buffer:
            self.flush()


class WavefrontSender:
    """
    Send points to Wavefront, directly or through a proxy, with the Wavefront SDK.

    The client is created on first use and dropped on close, so the next
    invocation starts with a fresh one.
    """

    def __init__(
        self,
        server: str,
        token: Optional[str] = None,
        batch_size: int = 10_000,
        max_queue_size: int = 50_000,
        flush_interval_seconds: int = 1,
    ):
        """Keep the connection settings; no connection is made yet."""
        self.server = server
        self.token = token
        self.batch_size = batch_size
        self.max_queue_size = max_queue_size
        self.flush_interval_seconds = flush_interval_seconds
        self._client: Optional[WavefrontClient] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "WavefrontSender":
        """Build a sender from the WAVEFRONT_* settings."""
        return cls(
            server=settings.server,
            token=settings.token,
            batch_size=settings.batch_size,
            max_queue_size=settings.max_queue_size,
            flush_interval_seconds=settings.flush_interval_seconds,
        )

    @property
    def client(self) -> WavefrontClient:
        """The SDK client, created when first needed."""
        if self._client is None:
            try:
                self._client = WavefrontClient(
                    server=self.server,
                    token=self.token,
                    max_queue_size=self.max_queue_size,
                    batch_size=self.batch_size,
                    flush_interval_seconds=self.flush_interval_seconds,
                )
            except Exception as e:
                raise TransportError(f"cannot create Wavefront client: {e}") from e
        return self._client

    def send_metric(
        self,
        name: str,
        value: float,
        timestamp: Optional[int],
        source: str,
        tags: dict[str, str],
    ) -> None:
        """Queue a measurement."""
        value = _check_value(name, value)
        try:
            self.client.send_metric(name, value, timestamp, source, _non_empty(tags))
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"failed to send metric {name!r}: {e}") from e

    def send_delta_counter(
        self, name: str, value: float, source: str, tags: dict[str, str]
    ) -> None:
        """Queue a counter increment."""
        value = _check_value(name, value)
        try:
            self.client.send_delta_counter(name, value, source, _non_empty(tags))
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"failed to send delta counter {name!r}: {e}") from e

    def flush(self) -> None:
        """Send everything queued by the client."""
        if self._client is None:
            return
        try:
            self._client.flush_now()
        except Exception as e:
            raise TransportError(f"failed to flush metrics: {e}") from e

    def close(self) -> None:
        """Close the client and forget it."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            raise TransportError(f"failed to close Wavefront client: {e}") from e
