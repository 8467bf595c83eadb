"""Shared collector plumbing: boto3 session/client construction and the provider error type."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Generic, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from app.schemas.provider import AwsConfig

logger = logging.getLogger(__name__)

ResourceSetT = TypeVar("ResourceSetT", bound=BaseModel)
T = TypeVar("T")

# Errors a provider SDK call can raise; anything else is a bug and propagates.
PROVIDER_ERRORS: tuple[type[Exception], ...] = (ClientError, BotoCoreError)


class CollectorError(Exception):
    """Raised when a provider's resources cannot be listed at all (credentials, permissions, network)."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None) -> None:
        self.provider = provider
        self.message = message
        self.cause = cause
        super().__init__(message)


def create_session(config: AwsConfig) -> boto3.Session:
    """Build a boto3 session; without explicit credentials boto3 resolves them from its default chain."""
    if config.credentials is None:
        return boto3.Session(region_name=config.region)
    return boto3.Session(
        aws_access_key_id=config.credentials.access_key_id,
        aws_secret_access_key=config.credentials.secret_access_key.get_secret_value(),
        region_name=config.region,
    )


def client_config(config: AwsConfig) -> Config:
    return Config(
        region_name=config.region,
        retries={"max_attempts": config.max_attempts, "mode": "standard"},
    )


def error_code(exc: Exception) -> str:
    """Return the AWS error code of a ClientError, or the exception class name otherwise."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "") or type(exc).__name__
    return type(exc).__name__


async def lookup_or_default(
    call: Callable[[], T],
    default: T,
    description: str,
    absent_codes: frozenset[str] = frozenset(),
) -> T:
    """
    Run one blocking sub-lookup in a worker thread and return its value.

    Provider errors degrade to `default` (the fail-closed value) and are logged; they never
    fail the record being built. Codes in `absent_codes` mean "not configured" and log at DEBUG.
    """
    try:
        return await asyncio.to_thread(call)
    except PROVIDER_ERRORS as e:
        code = error_code(e)
        level = logging.DEBUG if code in absent_codes else logging.WARNING
        logger.log(
            level,
            "Sub-lookup failed; using default",
            extra={"lookup": description, "error_code": code},
        )
        return default


class Collector(ABC, Generic[ResourceSetT]):
    """Read-only fetcher that turns one provider's native responses into a normalized resource set."""

    provider: str = ""

    async def list_or_raise(self, call: Callable[[], Any], what: str) -> Any:
        """Run a provider-level listing call; any provider error becomes a CollectorError."""
        try:
            return await asyncio.to_thread(call)
        except PROVIDER_ERRORS as e:
            raise CollectorError(
                self.provider,
                f"Failed to list {what}: {e}",
                cause=e,
            ) from e

    @abstractmethod
    async def collect(self) -> ResourceSetT:
        """Fetch and normalize all resources for this provider."""
