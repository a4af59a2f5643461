"""Agent holding the telemetry state shared by wrapped handlers."""

import functools
from typing import Any, Callable, Optional

from .adapter import LambdaHandler, new_handler
from .config import Settings, get_settings
from .counters import CounterState
from .memory import MemoryStatsProvider, get_memory_stats
from .monitoring import logger
from .sender import EmfSender, MetricSender, WavefrontSender
from .wrapper import wrap_handler


class WavefrontAgent:
    """
    Owns the settings, sender, counters and static point tags of one process.

    Usage::

        agent = WavefrontAgent()

        @agent.wrapper
        def handler(context: LambdaContext, event: Order) -> tuple[dict, Optional[Exception]]:
            ...
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sender: Optional[MetricSender] = None,
        memory_stats: Optional[MemoryStatsProvider] = None,
    ):
        """Create the agent; counters start at zero and the next invocation is a cold start."""
        self.settings = settings or get_settings()
        self.sender: MetricSender = sender or self._default_sender()
        self.memory_stats: MemoryStatsProvider = memory_stats or get_memory_stats
        self.point_tags: dict[str, str] = dict(self.settings.point_tags)
        self.counters = CounterState()

    def _default_sender(self) -> MetricSender:
        if self.settings.server:
            logger.info(f"Sending metrics to Wavefront at {self.settings.server}")
            return WavefrontSender.from_settings(self.settings)
        return EmfSender(namespace=self.settings.namespace)

    def wrap(self, handler: Optional[Callable]) -> LambdaHandler:
        """Adapt ``handler`` to ``(context, payload) -> (response, error)``."""
        if not self.settings.enabled:
            logger.info("Telemetry disabled, handler is wrapped without metrics")
            return new_handler(handler)
        return wrap_handler(handler, self)

    def wrapper(self, handler: Callable) -> Callable[[Any, Any], Any]:
        """Turn ``handler`` into a Lambda runtime entry point ``handler(event, context)``."""
        invoke = self.wrap(handler)

        @functools.wraps(handler)
        def lambda_handler(event: Any, context: Any) -> Any:
            response, err = invoke(context, event)
            if err is not None:
                raise err
            return response

        return lambda_handler
