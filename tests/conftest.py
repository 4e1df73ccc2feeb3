import asyncio
import os
import tempfile

_log_dir = tempfile.mkdtemp(prefix="catalog-tests-")
os.environ.setdefault("APP_LOG_FILE", os.path.join(_log_dir, "app.log"))
os.environ.setdefault("COUNTS_LOG_FILE", os.path.join(_log_dir, "counts.log"))

import pytest

from app.services.count_synchronizer import CountSynchronizer
from app.services.product_service import ProductService
from app.services.tree_mutator import TreeMutator
from app.services.tree_reader import TreeReader
from tests.fakes import InMemoryCatalogRepository


@pytest.fixture
def repo():
    return InMemoryCatalogRepository()


@pytest.fixture
def counts(repo):
    return CountSynchronizer(repo)


@pytest.fixture
def mutator(repo, counts):
    return TreeMutator(repo=repo, counts=counts, lock=asyncio.Lock())


@pytest.fixture
def reader(repo):
    return TreeReader(repo, recent_products_limit=3, search_limit=10, search_score_cutoff=60)


@pytest.fixture
def products(repo, counts):
    return ProductService(repo=repo, counts=counts)
