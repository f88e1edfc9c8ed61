"""In-memory asset store for development and tests."""

from ledger.media.asset_port import AssetStorePort


class InMemoryAssetStore(AssetStorePort):
    def __init__(self):
        self.qr_codes = {}  # product_id -> list of QR payloads
        self.images = set()
        self.should_succeed = True
        self.failure_reason = "Asset store unavailable"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Asset store unavailable"):
        """Configure the fake store behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def save_qr_code(self, product_id: str, payload: str):
        self.qr_codes.setdefault(str(product_id), []).append(payload)

    def save_image(self, path: str):
        self.images.add(path)

    def delete_qr_codes(self, product_id: str) -> int:
        if not self.should_succeed:
            raise OSError(self.failure_reason)
        return len(self.qr_codes.pop(str(product_id), []))

    def delete_image(self, path: str) -> bool:
        if not self.should_succeed:
            raise OSError(self.failure_reason)
        if path in self.images:
            self.images.discard(path)
            return True
        return False
