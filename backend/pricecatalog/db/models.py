# backend/pricecatalog/db/models.py

import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Product(Base):
    __tablename__ = "products"

    # Storefront fields
    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    product_type = Column(String, default="simple", nullable=False)
    status = Column(String, default="publish", nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    sku = Column(String, unique=True, index=True)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    # Catalog override SKU, takes precedence over sku
    catalog_sku = Column(String, index=True)

    # Stored prices, overwritten by the re-index job
    price = Column(Numeric(12, 2))
    regular_price = Column(Numeric(12, 2))

    # Variations relationship (1-to-many)
    variations = relationship("Product", back_populates="parent")
    parent = relationship("Product", back_populates="variations", remote_side=[id])

    @property
    def is_variable(self) -> bool:
        return self.product_type == "variable"

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}', type='{self.product_type}')>"
