from abc import ABC, abstractmethod
from typing import Iterable
from uuid import UUID
from app.schemas.category import RecomputeSummary

class ICountSynchronizer(ABC):
    @abstractmethod
    async def recompute(self, category_id: UUID, trigger: str = "manual") -> None:
        pass

    @abstractmethod
    async def recompute_many(self, category_ids: Iterable[UUID | None], trigger: str = "manual") -> None:
        pass

    @abstractmethod
    async def recompute_all(self) -> RecomputeSummary:
        pass
