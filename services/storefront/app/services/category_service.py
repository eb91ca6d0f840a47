from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from app.models.category import Category
from app.models.product import Product

logger = logging.getLogger(__name__)


class CategoryService:
    """Service layer for category operations"""

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self) -> List[Category]:
        """List active categories by name"""
        return (
            self.db.query(Category)
            .filter(Category.is_active.is_(True))
            .order_by(Category.name)
            .all()
        )

    def get_category_by_id(self, category_id: UUID) -> Category:
        """Get a category by ID"""
        category = self.db.query(Category).filter(Category.id == category_id).first()

        if not category:
            raise ValueError("Category not found")

        return category

    def update_category_counts(self) -> int:
        """Recompute item_count for every active category

        Counts active, published products. Every category is written, changed
        or not. Returns the number of categories updated.
        """
        categories = self.list_categories()
        logger.info(f"Updating item counts for {len(categories)} categories")

        for category in categories:
            count = self.db.query(Product).filter(
                Product.category_id == category.id,
                Product.is_active.is_(True),
                Product.is_published.is_(True)
            ).count()
            category.item_count = count
            self.db.commit()
            logger.debug(f"{category.name}: {count} items")

        logger.info("Category counts updated")
        return len(categories)
