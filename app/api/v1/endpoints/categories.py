from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from app.dependencies import get_product_service, get_tree_mutator, get_tree_reader
from app.schemas.category import (
    BulkLinkRequest,
    BulkLinkResult,
    BulkUpdateResult,
    CategoryBulkUpdateRequest,
    CategoryCreate,
    CategoryDetail,
    CategoryMoveRequest,
    CategoryOut,
    CategoryStats,
    CategoryUpdate,
    ReassignProductsRequest,
    ReassignResult,
)
from app.schemas.product import ProductPage
from app.services.interfaces.product_service_interface import IProductService
from app.services.interfaces.tree_mutator_interface import ITreeMutator
from app.services.interfaces.tree_reader_interface import ITreeReader
from app.services.utils import parse_id

router = APIRouter()

ROOT_PARENT_VALUES = ("null", "none")


@router.get("")
async def list_categories(
    active_only: bool = False,
    parent: Optional[str] = Query(None, description="Parent id, or 'null' for root categories"),
    search: Optional[str] = None,
    reader: ITreeReader = Depends(get_tree_reader)
):
    roots_only = parent is not None and parent.lower() in ROOT_PARENT_VALUES
    parent_id = parse_id(parent, "parent id") if parent and not roots_only else None
    categories = await reader.list_categories(
        active_only=active_only, parent_id=parent_id, roots_only=roots_only, search=search
    )
    return {
        "success": True,
        "count": len(categories),
        "categories": [CategoryOut.model_validate(category) for category in categories],
    }


@router.get("/search")
async def search_categories(
    query: str = Query(..., description="Free-text category name"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    reader: ITreeReader = Depends(get_tree_reader)
):
    categories = await reader.search_categories(query, limit=limit)
    return {
        "success": True,
        "count": len(categories),
        "categories": [CategoryOut.model_validate(category) for category in categories],
    }


@router.get("/tree")
async def get_category_tree(
    active_only: bool = False,
    live_counts: bool = False,
    reader: ITreeReader = Depends(get_tree_reader)
):
    tree = await reader.build_tree(active_only=active_only, live_counts=live_counts)
    return {"success": True, "categories": tree}


@router.get("/roots")
async def get_root_categories(
    active_only: bool = False,
    include_stats: bool = False,
    reader: ITreeReader = Depends(get_tree_reader)
):
    roots = await reader.list_roots(active_only=active_only, include_stats=include_stats)
    return {
        "success": True,
        "count": len(roots),
        "categories": [root.model_dump(exclude_none=not include_stats) for root in roots],
    }


@router.get("/stats", response_model=CategoryStats)
async def get_category_stats(reader: ITreeReader = Depends(get_tree_reader)):
    return await reader.stats()


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, mutator: ITreeMutator = Depends(get_tree_mutator)):
    return await mutator.create(data)


@router.post("/root", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_root_category(data: CategoryCreate, mutator: ITreeMutator = Depends(get_tree_mutator)):
    return await mutator.create_root(data)


@router.post("/reassign-products", response_model=ReassignResult)
async def reassign_category_products(
    request: ReassignProductsRequest,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.reassign_products(request.source_category_id, request.target_category_id)


@router.patch("/bulk", response_model=BulkUpdateResult)
async def bulk_update_categories(
    request: CategoryBulkUpdateRequest,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.bulk_update_categories(request.category_ids, request.update_data)


@router.get("/{category_id}", response_model=CategoryDetail)
async def get_category(category_id: UUID, reader: ITreeReader = Depends(get_tree_reader)):
    return await reader.get_category(category_id)


@router.get("/{category_id}/path")
async def get_category_path(category_id: UUID, reader: ITreeReader = Depends(get_tree_reader)):
    path = await reader.breadcrumb_path(category_id)
    return {"success": True, "path": path}


@router.get("/{category_id}/products", response_model=ProductPage)
async def get_category_products(
    category_id: UUID,
    include_subcategories: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    products: IProductService = Depends(get_product_service)
):
    return await products.list_products_by_category(
        category_id, include_subcategories=include_subcategories, page=page, limit=limit
    )


@router.patch("/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: UUID,
    changes: CategoryUpdate,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.update(category_id, changes)


@router.post("/{category_id}/move", response_model=CategoryOut)
async def move_category(
    category_id: UUID,
    request: CategoryMoveRequest,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.move(category_id, request.new_parent_id)


@router.post("/{category_id}/toggle-active", response_model=CategoryOut)
async def toggle_category_active(category_id: UUID, mutator: ITreeMutator = Depends(get_tree_mutator)):
    return await mutator.toggle_active(category_id)


@router.delete("/{category_id}")
async def delete_category(category_id: UUID, mutator: ITreeMutator = Depends(get_tree_mutator)):
    await mutator.delete(category_id)
    return {"success": True, "message": "Category deleted successfully"}


@router.post("/{category_id}/link-products", response_model=BulkLinkResult)
async def bulk_link_products(
    category_id: UUID,
    request: BulkLinkRequest,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.bulk_link_products(category_id, request.product_ids)
