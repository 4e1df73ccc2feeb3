import uuid
from datetime import datetime, timezone
from sqlalchemy import Uuid, Boolean, Column, DateTime, ForeignKey, Integer, String
from app.db.session import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(String(500), default="")
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    order = Column(Integer, default=0, nullable=False, index=True)

    seo_title = Column(String(60), nullable=True)
    seo_description = Column(String(160), nullable=True)
    seo_keywords = Column(String(200), nullable=True)

    # Denormalized, recomputed by CountSynchronizer
    direct_product_count = Column(Integer, default=0, nullable=False)
    subtree_product_count = Column(Integer, default=0, nullable=False)
    count_last_computed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<Category {self.name!r} id={self.id}>"
