"""
Bounded token relay.

Decouples backend decoding from the outward stream: a producer task drains
the token source into a bounded queue while the consumer yields from it.
Closing or cancelling the consumer cancels the producer, which in turn
closes the source and aborts the backend request.

Dependencies: asyncio
System role: Incremental forwarding between completion client and SSE stream
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, AsyncIterator

logger = logging.getLogger(__name__)

_END = object()


class _Failure:
    def __init__(self, error: Exception) -> None:
        self.error = error


async def relay_tokens(source: AsyncIterator[str], buffer_size: int = 64) -> AsyncGenerator[str, None]:
    """
    Forward tokens from source through a bounded queue.

    Args:
        source: Token iterator (typically LLMClient.stream_chat)
        buffer_size: Queue capacity; the producer blocks when it is full

    Yields:
        str: Tokens in source order

    Raises:
        Exception: Whatever the source raised, after the tokens before it
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=buffer_size)

    async def produce() -> None:
        try:
            async for token in source:
                await queue.put(token)
        except Exception as e:
            await queue.put(_Failure(e))
            return
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
        await queue.put(_END)

    producer = asyncio.create_task(produce())
    try:
        while True:
            item = await queue.get()
            if item is _END:
                break
            if isinstance(item, _Failure):
                raise item.error
            yield item
    finally:
        if not producer.done():
            logger.info(f"{__name__}:relay_tokens - Consumer stopped early, cancelling producer")
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
