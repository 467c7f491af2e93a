from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from lingualine.domain.errors import TranslationFailure
from lingualine.domain.models import Translation

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    async def translate(
        self,
        *,
        item_id: int,
        text: str,
        system_prompt: str,
        source_language: str,
        target_language: str,
        context: str = "",
    ) -> Translation: ...

    async def close(self) -> None: ...


@dataclass(slots=True)
class SemaphoreLLMProvider:
    inner: LLMProvider
    semaphore: asyncio.Semaphore

    async def translate(
        self,
        *,
        item_id: int,
        text: str,
        system_prompt: str,
        source_language: str,
        target_language: str,
        context: str = "",
    ) -> Translation:
        async with self.semaphore:
            return await self.inner.translate(
                item_id=item_id,
                text=text,
                system_prompt=system_prompt,
                source_language=source_language,
                target_language=target_language,
                context=context,
            )

    async def close(self) -> None:
        await self.inner.close()


@dataclass(slots=True)
class RetryingLLMProvider:
    """Per-attempt timeout plus bounded exponential backoff around a provider.

    Attempt `n` (0-based) that fails is followed by a sleep of
    `min(base_delay_s * 2**n, max_delay_s)`. After `max_retries` retries the
    last error is raised as `TranslationFailure`.
    """

    inner: LLMProvider
    max_retries: int = 3
    timeout_s: float | None = 10.0
    base_delay_s: float = 1.0
    max_delay_s: float = 30.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0 or None")
        if self.base_delay_s < 0 or self.max_delay_s < 0:
            raise ValueError("retry delays must be >= 0")

    def backoff_delay(self, attempt: int) -> float:
        return min(self.base_delay_s * (2**attempt), self.max_delay_s)

    async def translate(
        self,
        *,
        item_id: int,
        text: str,
        system_prompt: str,
        source_language: str,
        target_language: str,
        context: str = "",
    ) -> Translation:
        last_exc: BaseException | None = None
        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = self.backoff_delay(attempt - 1)
                logger.warning(
                    f"[LLM] Retry {attempt}/{self.max_retries} for item {item_id} in {delay:.1f}s "
                    f"({last_exc!r})"
                )
                await self.sleep(delay)
            try:
                call = self.inner.translate(
                    item_id=item_id,
                    text=text,
                    system_prompt=system_prompt,
                    source_language=source_language,
                    target_language=target_language,
                    context=context,
                )
                if self.timeout_s is None:
                    return await call
                return await asyncio.wait_for(call, timeout=self.timeout_s)
            except asyncio.CancelledError:
                raise
            except asyncio.TimeoutError as exc:
                last_exc = exc
            except Exception as exc:
                last_exc = exc

        raise TranslationFailure(
            f"translation failed after {self.max_retries + 1} attempts: {last_exc!r}"
        ) from last_exc

    async def close(self) -> None:
        await self.inner.close()
