"""Fake embedding adapter: deterministic vectors derived from the image bytes.

Identical images map to identical vectors, so image search finds them with a
similarity of 1.0. Configurable failure for testing the error path.
"""

import hashlib

from ledger.exceptions import EmbeddingUnavailable
from ledger.media.embedding_port import EmbeddingPort

DIMENSIONS = 32


class FakeEmbedder(EmbeddingPort):
    def __init__(self, model: str = "fake-embedding"):
        self.model = model
        self.should_succeed = True
        self.failure_reason = "Embedding service unavailable"
        self.calls = 0

    def configure(self, should_succeed: bool = True, failure_reason: str = "Embedding service unavailable"):
        """Configure the fake embedder behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def embed_image(self, content: bytes, filename: str | None = None) -> list[float]:
        self.calls += 1
        if not self.should_succeed:
            raise EmbeddingUnavailable(self.failure_reason)
        if not content:
            raise EmbeddingUnavailable("Image is empty")

        digest = hashlib.sha256(content).digest()
        return [(digest[i] - 127.5) / 127.5 for i in range(DIMENSIONS)]
