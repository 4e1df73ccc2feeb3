from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.crud.base import AbstractCatalogRepository
from app.crud.catalog_repository import CatalogRepository
from app.services.count_synchronizer import CountSynchronizer
from app.services.interfaces.count_synchronizer_interface import ICountSynchronizer
from app.services.interfaces.product_service_interface import IProductService
from app.services.interfaces.tree_mutator_interface import ITreeMutator
from app.services.interfaces.tree_reader_interface import ITreeReader
from app.services.product_service import ProductService
from app.services.tree_mutator import TreeMutator
from app.services.tree_reader import TreeReader

def get_catalog_repository(db: AsyncSession = Depends(get_db)) -> AbstractCatalogRepository:
    return CatalogRepository(db)

def get_count_synchronizer(repo: AbstractCatalogRepository = Depends(get_catalog_repository)) -> ICountSynchronizer:
    return CountSynchronizer(repo)

def get_tree_reader(repo: AbstractCatalogRepository = Depends(get_catalog_repository)) -> ITreeReader:
    return TreeReader(repo)

def get_tree_mutator(
    repo: AbstractCatalogRepository = Depends(get_catalog_repository),
    counts: ICountSynchronizer = Depends(get_count_synchronizer),
) -> ITreeMutator:
    return TreeMutator(repo=repo, counts=counts)

def get_product_service(
    repo: AbstractCatalogRepository = Depends(get_catalog_repository),
    counts: ICountSynchronizer = Depends(get_count_synchronizer),
) -> IProductService:
    return ProductService(repo=repo, counts=counts)
