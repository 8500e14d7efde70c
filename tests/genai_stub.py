"""Stub of the ``google.genai`` client surface used by FinanceAssistant.

Only ``client.aio.models.generate_content`` and
``client.aio.models.generate_content_stream`` are provided. Each call is
recorded in ``calls`` so tests can check the prompt and system instruction.
"""
from types import SimpleNamespace
from typing import List, Optional


class StreamFailure(Exception):
    """Raised by the stub stream after its chunks run out, when requested."""


class _Models:
    def __init__(self, outer: "GenaiStub"):
        self._outer = outer

    async def generate_content(self, **kwargs):
        self._outer.calls.append(kwargs)
        if self._outer.error:
            raise self._outer.error
        return SimpleNamespace(text=self._outer.text)

    async def generate_content_stream(self, **kwargs):
        self._outer.calls.append(kwargs)
        if self._outer.error:
            raise self._outer.error
        return self._outer._chunks()


class GenaiStub:
    """Minimal stand-in for ``genai.Client``.

    Args:
        text: Response text for generate_content
        chunks: Text increments for generate_content_stream
        error: Raised from either call when set
        fail_after_chunks: Raise StreamFailure once all chunks were yielded
    """

    def __init__(self, text: str = "", chunks: Optional[List[str]] = None,
                 error: Optional[Exception] = None, fail_after_chunks: bool = False):
        self.text = text
        self.chunks = chunks or []
        self.error = error
        self.fail_after_chunks = fail_after_chunks
        self.calls = []
        self.aio = SimpleNamespace(models=_Models(self))

    async def _chunks(self):
        for chunk in self.chunks:
            yield SimpleNamespace(text=chunk)
        if self.fail_after_chunks:
            raise StreamFailure("connection reset")

    def system_instruction(self, index: int = -1) -> str:
        return self.calls[index]["config"].system_instruction
