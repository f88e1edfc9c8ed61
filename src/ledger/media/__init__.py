"""Media adapters: image embeddings and stored assets (QR codes, image files)."""

from ledger.config import get_settings

_embedder_instance = None
_asset_store_instance = None


def get_embedder():
    """Return the configured embedding adapter (singleton).

    Uses FakeEmbedder by default. Set EMBEDDING_ADAPTER=http to call the
    embedding service at EMBEDDING_SERVICE_URL.
    """
    global _embedder_instance
    if _embedder_instance is None:
        settings = get_settings()
        adapter = settings.EMBEDDING_ADAPTER
        if adapter == "fake":
            from ledger.media.fake_embedding import FakeEmbedder

            _embedder_instance = FakeEmbedder(model=settings.EMBEDDING_MODEL)
        elif adapter == "http":
            from ledger.media.http_embedding import HttpEmbedder

            _embedder_instance = HttpEmbedder(
                base_url=settings.EMBEDDING_SERVICE_URL,
                timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
                model=settings.EMBEDDING_MODEL,
            )
        else:
            raise ValueError(f"Unknown embedding adapter: {adapter}")
    return _embedder_instance


def get_asset_store():
    """Return the configured asset store adapter (singleton)."""
    global _asset_store_instance
    if _asset_store_instance is None:
        adapter = get_settings().ASSET_STORE_ADAPTER
        if adapter == "memory":
            from ledger.media.fake_assets import InMemoryAssetStore

            _asset_store_instance = InMemoryAssetStore()
        else:
            raise ValueError(f"Unknown asset store adapter: {adapter}")
    return _asset_store_instance


def reset_media():
    """Reset the adapter singletons (useful for testing)."""
    global _embedder_instance, _asset_store_instance
    _embedder_instance = None
    _asset_store_instance = None
