from .stock_ledger import (
    adjust_stock,
    delete_movement,
    get_product_stock_movements,
    post_bulk_receive,
    post_movement,
    post_order_deductions,
    post_order_returns,
)

__all__ = [
    "post_movement",
    "post_bulk_receive",
    "post_order_deductions",
    "post_order_returns",
    "adjust_stock",
    "delete_movement",
    "get_product_stock_movements",
]
