from uuid import UUID
from fastapi import APIRouter, Depends, status
from app.dependencies import get_product_service, get_tree_mutator
from app.schemas.product import ProductCreate, ProductOut, ProductUpdate
from app.services.interfaces.product_service_interface import IProductService
from app.services.interfaces.tree_mutator_interface import ITreeMutator

router = APIRouter()

@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, products: IProductService = Depends(get_product_service)):
    return await products.create_product(data)

@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: UUID, products: IProductService = Depends(get_product_service)):
    return await products.get_product(product_id)

@router.patch("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: UUID,
    changes: ProductUpdate,
    products: IProductService = Depends(get_product_service)
):
    return await products.update_product(product_id, changes)

@router.delete("/{product_id}", response_model=ProductOut)
async def delete_product(product_id: UUID, products: IProductService = Depends(get_product_service)):
    return await products.delete_product(product_id)

@router.post("/{product_id}/categories/{category_id}", response_model=ProductOut)
async def link_product_to_category(
    product_id: UUID,
    category_id: UUID,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.link_product(product_id, category_id)

@router.delete("/{product_id}/categories/{category_id}", response_model=ProductOut)
async def unlink_product_from_category(
    product_id: UUID,
    category_id: UUID,
    mutator: ITreeMutator = Depends(get_tree_mutator)
):
    return await mutator.unlink_product(product_id, category_id)
