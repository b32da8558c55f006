# backend/cropscan/utils/concurrency.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, List, Optional, TypeVar

log = logging.getLogger("cropscan.concurrency")

T = TypeVar("T")


@dataclass
class Settled(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _settle(aw: Awaitable[T], label: str) -> Settled[T]:
    try:
        return Settled(value=await aw)
    except Exception as e:
        log.warning("%s failed: %s", label, e)
        return Settled(error=e)


async def gather_settled(*aws: Awaitable[Any], labels: Optional[List[str]] = None) -> List[Settled[Any]]:
    """
    Run every awaitable concurrently and wait for all of them.
    Each branch's exception is captured in its own Settled slot; one failure never cancels its siblings.
    Results keep the input order.
    """
    labels = labels or [f"branch {i}" for i in range(len(aws))]
    return list(await asyncio.gather(*(_settle(aw, label) for aw, label in zip(aws, labels))))
