"""Telemetry decorator around the adapted handler."""

import time
from typing import TYPE_CHECKING, Any, Callable, Optional

from .adapter import LambdaHandler, new_handler
from .context import InvocationIdentity
from .counters import ERRORS
from .memory import MemoryStats
from .monitoring import logger, tracer

if TYPE_CHECKING:
    from .agent import WavefrontAgent

DURATION = "aws.lambda.wf.duration"
MEM_TOTAL = "aws.lambda.wf.mem.total"
MEM_USED = "aws.lambda.wf.mem.used"
MEM_PERCENTAGE = "aws.lambda.wf.mem.percentage"


class HandlerWrapper:
    """
    Wraps a handler so every invocation reports its metrics.

    Counters and the cold start flag belong to the agent; tags are rebuilt for
    every invocation. Metrics are flushed and the sender closed on every exit
    path, and an exception raised by the handler is re-raised only after that.
    """

    def __init__(self, handler: Optional[Callable], agent: "WavefrontAgent"):
        """Validate the handler once and keep the adapted version."""
        self.agent = agent
        self.wrapped_handler: LambdaHandler = new_handler(handler)

    def invoke(self, context: Any, payload: Any) -> tuple[Any, Optional[BaseException]]:
        """Call the handler and report metrics; returns ``(response, error)``."""
        counters = self.agent.counters
        identity = InvocationIdentity.from_context(
            context, cold_start=counters.cold_start
        )
        tags = identity.point_tags(self.agent.point_tags)
        logger.append_keys(
            function_name=identity.function_name, cold_start=identity.cold_start
        )

        start = time.perf_counter()
        counters.invocations.increment()

        response, err, aborted = None, None, False
        try:
            response, err = self._call_handler(context, payload, identity)
        except BaseException:
            aborted = True
            logger.exception("Handler raised, reporting metrics before re-raising")
            raise
        finally:
            self._finalize(identity, tags, start, failed=aborted or err is not None)

        return response, err

    @tracer.capture_method(capture_response=False)
    def _call_handler(
        self, context: Any, payload: Any, identity: InvocationIdentity
    ) -> tuple[Any, Optional[BaseException]]:
        tracer.put_annotation(key="ColdStart", value=identity.cold_start)
        tracer.put_annotation(key="FunctionName", value=identity.function_name)
        return self.wrapped_handler(context, payload)

    def _finalize(
        self,
        identity: InvocationIdentity,
        tags: dict[str, str],
        start: float,
        failed: bool,
    ) -> None:
        agent = self.agent
        counters = agent.counters
        source = identity.function_name

        if failed:
            counters.errors.increment()
            self._send(
                agent.sender.send_delta_counter,
                ERRORS,
                counters.errors.delta(),
                source,
                tags,
            )

        counters.record_cold_start()
        duration_ms = (time.perf_counter() - start) * 1000

        if agent.settings.report_standard_metrics:
            try:
                memory = agent.memory_stats()
            except Exception:
                logger.exception("Memory stats unavailable")
                memory = MemoryStats()
            report_time = int(time.time())
            metrics = {
                DURATION: duration_ms,
                MEM_TOTAL: memory.total,
                MEM_USED: memory.used,
                MEM_PERCENTAGE: memory.used_percentage,
            }
            for name, value in metrics.items():
                self._send(agent.sender.send_metric, name, value, report_time, source, tags)

            for counter in (counters.cold_starts, counters.invocations):
                self._send(
                    agent.sender.send_delta_counter,
                    counter.name,
                    counter.delta(),
                    source,
                    tags,
                )

        self._send(agent.sender.flush)
        self._send(agent.sender.close)

    @staticmethod
    def _send(fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception(f"{getattr(fn, '__name__', fn)} failed")


def wrap_handler(handler: Optional[Callable], agent: "WavefrontAgent") -> LambdaHandler:
    """Decorate ``handler`` with the telemetry wrapper; validation happens once, here."""
    return HandlerWrapper(handler, agent).invoke
