"""Observability utils"""

from aws_lambda_powertools import Logger, Tracer

from .config import get_settings

settings = get_settings()

logger: Logger = Logger(service=settings.service or "wflambda")
tracer: Tracer = Tracer(service=settings.service or "wflambda")
