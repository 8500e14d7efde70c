"""Cancellable streams of model text increments."""
from typing import AsyncIterator, Callable, List, Optional

from financeai.utils.logger import get_logger

logger = get_logger()


class InsightStream:
    """Async sequence of text increments produced by the model.

    Iterating yields each increment once. A failure inside the producer ends
    the stream early and is kept in ``error``; text already yielded stays
    valid. After ``cancel()`` no further increments are delivered.
    """

    def __init__(self, chunks: AsyncIterator[str], on_close: Optional[Callable[[], None]] = None):
        self._chunks = chunks
        self._parts: List[str] = []
        self._on_close = on_close
        self._closed = False
        self.cancelled = False
        self.error: Optional[Exception] = None

    @property
    def text(self) -> str:
        """Text received so far."""
        return "".join(self._parts)

    @property
    def finished(self) -> bool:
        return self._closed

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        if self.cancelled or self._closed:
            return

        try:
            async for chunk in self._chunks:
                if self.cancelled:
                    break
                if not chunk:
                    continue
                self._parts.append(chunk)
                yield chunk
        except Exception as e:
            self.error = e
            logger.error(f"Insight stream interrupted after {len(self.text)} characters: {e}")
        finally:
            await self._release()

    async def consume(self, on_update: Callable[[str], None]) -> str:
        """
        Read the whole stream, passing the accumulated text after each increment.

        Args:
            on_update: Called with the full text so far; never called after cancel()

        Returns:
            Final accumulated text
        """
        iterator = self.__aiter__()
        try:
            async for _ in iterator:
                if self.cancelled:
                    break
                on_update(self.text)
        finally:
            await iterator.aclose()
        return self.text

    def cancel(self) -> None:
        """Detach the consumer; later increments are discarded."""
        if not self.cancelled:
            logger.debug("Insight stream cancelled")
        self.cancelled = True
        if self._on_close and not self._closed:
            self._closed = True
            self._on_close()

    async def aclose(self) -> None:
        """Cancel and release the underlying producer."""
        self.cancel()
        await self._release()

    async def _release(self) -> None:
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            try:
                await aclose()
            except RuntimeError as e:
                # Producer is mid-step in another task; it stops at its next check
                logger.debug(f"Could not close insight producer: {e}")
        if not self._closed:
            self._closed = True
            if self._on_close:
                self._on_close()
