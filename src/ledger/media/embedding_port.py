"""Embedding port: turns an uploaded product image into a feature vector."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    model: str

    @abstractmethod
    async def embed_image(self, content: bytes, filename: str | None = None) -> list[float]:
        """Return the embedding vector for the image bytes.

        Raises ``EmbeddingUnavailable`` when the collaborator fails or
        returns no vector.
        """
        ...
