"""Visual product search over stored image embeddings."""

import math

from protean.utils.globals import current_domain

from ledger.config import get_settings
from ledger.product.product import Product


def cosine_similarity(a, b):
    """Cosine similarity of two vectors, or -1 when they cannot be compared."""
    if not a or not b or len(a) != len(b):
        return -1.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return -1.0
    return dot / (norm_a * norm_b)


def find_similar_products(vector, threshold=None, limit=None):
    """Rank active products by the best similarity of any of their images.

    Matches at or above ``threshold`` count as a confident hit. When there
    are none, the closest products are returned as suggestions with
    ``found`` set to False.
    """
    settings = get_settings()
    threshold = settings.IMAGE_MATCH_THRESHOLD if threshold is None else threshold
    limit = settings.IMAGE_MATCH_LIMIT if limit is None else limit

    products = [
        p
        for p in current_domain.repository_for(Product)._dao.query.filter(is_active=True).all().items
        if p.image_embeddings
    ]
    if not products:
        return {
            "found": False,
            "matches": [],
            "message": "No products with embeddings found. Add new products or backfill embeddings.",
        }

    matches = []
    for product in products:
        best = max(cosine_similarity(vector, e.values) for e in product.image_embeddings)
        if best >= 0:
            paths = product.image_paths
            matches.append(
                {
                    "product_id": product.product_id,
                    "name": product.name,
                    "category": product.category,
                    "thumbnail": paths[0] if paths else None,
                    "similarity": round(best, 6),
                }
            )

    if not matches:
        return {"found": False, "matches": [], "message": "No similar products found."}

    matches.sort(key=lambda m: m["similarity"], reverse=True)
    strong = [m for m in matches if m["similarity"] >= threshold]
    if not strong:
        return {
            "found": False,
            "matches": matches[:limit],
            "message": "No strong match, here are the closest suggestions.",
        }
    return {"found": True, "matches": strong[:limit], "message": None}
