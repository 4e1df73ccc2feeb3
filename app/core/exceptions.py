"""
Catalog error kinds.

Every validation error is raised before anything is written. Each error
carries the HTTP status the API layer answers with, so routers never have
to translate them by hand.
"""
from typing import Any, Dict, Optional
from fastapi import status


class CatalogError(Exception):
    """Base class for all catalog errors"""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidName(CatalogError):
    """Raised when a category name is blank, too long or yields no slug"""


class InvalidId(CatalogError):
    """Raised when an identifier cannot be parsed"""

    def __init__(self, value: Any, kind: str = "id"):
        super().__init__(
            message=f"Invalid {kind} format: '{value}'",
            details={"value": str(value)}
        )


class ParentNotFound(CatalogError):
    """Raised when a parent category reference does not resolve"""

    def __init__(self, parent_id: Any):
        super().__init__(
            message="Parent category not found",
            details={"parent_id": str(parent_id)}
        )


class DuplicateSiblingName(CatalogError):
    """Raised when a sibling with the same name already exists"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, name: str, parent_id: Any = None):
        super().__init__(
            message=f"Category with name '{name}' already exists at this level",
            details={"name": name, "parent_id": str(parent_id) if parent_id else None}
        )


class DuplicateSlug(CatalogError):
    """Raised when the derived slug is already taken anywhere in the tree"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, slug: str):
        super().__init__(
            message=f"Category slug '{slug}' is already in use",
            details={"slug": slug}
        )


class SelfParent(CatalogError):
    """Raised when a category would become its own parent"""

    def __init__(self, category_id: Any):
        super().__init__(
            message="Category cannot be its own parent",
            details={"category_id": str(category_id)}
        )


class CircularReference(CatalogError):
    """Raised when a move would put a category under one of its descendants"""

    def __init__(self, category_id: Any, new_parent_id: Any):
        super().__init__(
            message="Circular reference detected in category hierarchy",
            details={"category_id": str(category_id), "new_parent_id": str(new_parent_id)}
        )


class CycleDetected(CatalogError):
    """Raised when stored data already contains a parent cycle"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, category_id: Any):
        super().__init__(
            message="Corrupted category hierarchy: cycle detected",
            details={"category_id": str(category_id)}
        )


class HasChildren(CatalogError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, category_id: Any, child_count: int):
        super().__init__(
            message=(
                f"Cannot delete category with {child_count} sub-category(ies). "
                "Please delete or reassign sub-categories first."
            ),
            details={"category_id": str(category_id), "child_count": child_count}
        )


class HasProducts(CatalogError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, category_id: Any, product_count: int):
        super().__init__(
            message=(
                f"Cannot delete category with {product_count} product(s). "
                "Please reassign or remove products first."
            ),
            details={"category_id": str(category_id), "product_count": product_count}
        )


class CategoryNotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, category_id: Any):
        super().__init__(
            message=f"Category with identifier '{category_id}' not found",
            details={"category_id": str(category_id)}
        )


class ProductNotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id: Any):
        super().__init__(
            message=f"Product with identifier '{product_id}' not found",
            details={"product_id": str(product_id)}
        )
