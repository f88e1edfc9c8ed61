"""Asset port: stored QR codes and uploaded image files for products."""

from abc import ABC, abstractmethod


class AssetStorePort(ABC):
    @abstractmethod
    def delete_qr_codes(self, product_id: str) -> int:
        """Remove every cached QR code for the product. Returns the number removed."""
        ...

    @abstractmethod
    def delete_image(self, path: str) -> bool:
        """Remove an uploaded image file. Returns False when it did not exist."""
        ...
