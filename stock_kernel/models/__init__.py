"""ORM models for stock master data and the transaction log."""

from stock_kernel.models.batch import ProductBatchModel
from stock_kernel.models.product import ProductCategoryModel, ProductModel
from stock_kernel.models.stock_transaction import StockTransactionModel

__all__ = [
    "ProductBatchModel",
    "ProductCategoryModel",
    "ProductModel",
    "StockTransactionModel",
]
