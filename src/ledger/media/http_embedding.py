"""HTTP embedding adapter: posts the image to an external CLIP service."""

import httpx
import structlog

from ledger.exceptions import EmbeddingUnavailable
from ledger.media.embedding_port import EmbeddingPort

logger = structlog.get_logger(__name__)


class HttpEmbedder(EmbeddingPort):
    def __init__(self, base_url: str, timeout: float = 30.0, model: str = "clip-vit-b32"):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.model = model

    async def embed_image(self, content: bytes, filename: str | None = None) -> list[float]:
        files = {"file": (filename or "image", content, "application/octet-stream")}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/embed-image", files=files)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Embedding service returned an error",
                status_code=exc.response.status_code,
                url=self.base_url,
            )
            raise EmbeddingUnavailable(f"Embedding service error: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Embedding service unreachable", url=self.base_url, error=str(exc))
            raise EmbeddingUnavailable("Embedding service unreachable") from exc

        vector = data.get("vector") if isinstance(data, dict) else None
        if not vector:
            raise EmbeddingUnavailable("Embedding service returned no vector")
        if data.get("model"):
            self.model = data["model"]
        return vector
