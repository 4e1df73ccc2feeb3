import uuid
from sqlalchemy import Uuid, Boolean, Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from app.db.session import Base
from app.models.product_categories import product_categories

class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(200), index=True, nullable=False)
    # Legacy single category, kept in sync with the first entry of `categories`
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    categories = relationship(
        "Category",
        secondary=product_categories,
        order_by=product_categories.c.position,
        lazy="selectin",
    )

    @property
    def category_ids(self) -> list[uuid.UUID]:
        return [category.id for category in self.categories]

    def __repr__(self) -> str:
        return f"<Product {self.name!r} id={self.id}>"
