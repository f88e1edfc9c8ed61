"""AttachImageEmbedding: store the feature vector of a product image."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ledger.domain import ledger
from ledger.product.product import Product
from ledger.product.stock import load_active_product


@ledger.command(part_of="Product")
class AttachImageEmbedding:
    product_id = Identifier(required=True)
    image_path = String(required=True, max_length=500)
    vector = Text(required=True)  # JSON array of floats
    model = String(required=True, max_length=50)


@ledger.command_handler(part_of=Product)
class ImageEmbeddingHandler:
    @handle(AttachImageEmbedding)
    def attach_image_embedding(self, command):
        product = load_active_product(command.product_id)
        vector = json.loads(command.vector)
        product.attach_image_embedding(command.image_path, vector, command.model)
        current_domain.repository_for(Product).add(product)
        return len(vector)
