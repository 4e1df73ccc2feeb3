from sqlalchemy import Table, Column, ForeignKey, Integer, Uuid
from app.db.session import Base

# Ordered membership set of a product; position 0 is the primary category
product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("position", Integer, nullable=False, default=0)
)
