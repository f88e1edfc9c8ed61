"""Stock status derivation shared by products and fabrics."""

from enum import Enum


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


def derive_status(stock, low_stock_alert, is_discontinued=False):
    """Return the status value for a stock level.

    A discontinued item keeps its status regardless of stock. Otherwise:
    nothing left is out of stock, anything at or below the alert threshold is
    low stock, and the rest is in stock.
    """
    if is_discontinued:
        return StockStatus.DISCONTINUED.value
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK.value
    if stock <= (low_stock_alert or 0):
        return StockStatus.LOW_STOCK.value
    return StockStatus.IN_STOCK.value
