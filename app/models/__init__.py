from app.models.category import Category
from app.models.product import Product
from app.models.product_categories import product_categories

__all__ = ["Category", "Product", "product_categories"]
