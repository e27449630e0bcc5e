"""
Sequential multi-store workflows without a shared transaction.

A saga is an ordered list of named steps run against independent stores.
There is no rollback: when a step fails the remaining steps are skipped,
the steps already applied stay applied, and the caller is expected to
re-invoke the whole (idempotent) operation.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

import httpx

from careconnect.exceptions import NotFoundError, PartialFailureError, StoreError

logger = logging.getLogger(__name__)

ContextT = TypeVar("ContextT")


@dataclass(frozen=True)
class SagaStep(Generic[ContextT]):
    """One store operation in a saga."""

    name: str
    action: Callable[[ContextT], Awaitable[None]]


class Saga(Generic[ContextT]):
    """Runs steps in order, recording which ones completed."""

    def __init__(self, name: str, steps: list[SagaStep[ContextT]]):
        self.name = name
        self.steps = steps

    async def run(self, context: ContextT) -> ContextT:
        """
        Run every step against a shared context.

        Store and transport failures become PartialFailureError naming the
        failed step. A not-found error propagates as-is only while nothing
        has been applied yet; after that it is a partial failure too.

        Raises:
            NotFoundError: If the first step finds its target missing
            PartialFailureError: If a store call fails mid-pipeline
        """
        completed: list[str] = []
        for step in self.steps:
            try:
                await step.action(context)
            except (StoreError, NotFoundError, httpx.HTTPError) as e:
                if isinstance(e, NotFoundError) and not completed:
                    raise
                status_code = getattr(e, "status_code", None)
                logger.error(
                    "%s failed at step %s after %s: %s",
                    self.name,
                    step.name,
                    completed or "no steps",
                    e,
                )
                raise PartialFailureError(
                    str(e) or type(e).__name__,
                    step=step.name,
                    completed_steps=list(completed),
                    status_code=status_code,
                ) from e
            completed.append(step.name)
            logger.debug("%s: step %s done", self.name, step.name)
        return context
