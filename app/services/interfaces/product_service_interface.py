from abc import ABC, abstractmethod
from typing import Any
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductPage, ProductUpdate

class IProductService(ABC):
    @abstractmethod
    async def create_product(self, data: ProductCreate) -> Product:
        pass

    @abstractmethod
    async def get_product(self, product_id: Any) -> Product:
        pass

    @abstractmethod
    async def update_product(self, product_id: Any, changes: ProductUpdate) -> Product:
        pass

    @abstractmethod
    async def delete_product(self, product_id: Any) -> Product:
        pass

    @abstractmethod
    async def list_products_by_category(
        self, category_id: Any, include_subcategories: bool = False, page: int = 1, limit: int = 20
    ) -> ProductPage:
        pass
