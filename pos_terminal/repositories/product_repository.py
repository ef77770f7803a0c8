# ==============================================================================
# PRODUCT REPOSITORY
# ==============================================================================
# In-memory catalog: {product_id: Product}
# Categories live in CategoryRepository and are joined by name.
# ==============================================================================

import uuid
from typing import List, Optional

from pos_terminal.models import Category, Product
from pos_terminal.repositories.base import DictRepository


class ProductRepository(DictRepository[Product]):
    """
    Repository for catalog products.

    Lookups by SKU and category are linear scans; the catalog of a single
    terminal is small.
    """

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """
        Finds a product by SKU (case-insensitive).

        Args:
            sku: SKU to look for

        Returns:
            Product or None
        """
        wanted = (sku or '').strip().lower()
        return self.find_first(lambda p: p.sku.strip().lower() == wanted)

    def get_by_category(self, category: str) -> List[Product]:
        return self.find_all(lambda p: p.category == category)

    def search(self, query: str) -> List[Product]:
        """
        Case-insensitive substring search on name and SKU; barcode matches
        by plain substring.

        Args:
            query: Text typed by the operator

        Returns:
            Matching products in catalog order
        """
        lower_query = (query or '').lower()

        def matches(product: Product) -> bool:
            return (
                lower_query in product.name.lower()
                or lower_query in product.sku.lower()
                or (product.barcode is not None and query in product.barcode)
            )

        return self.find_all(matches)

    def get_low_stock(self, threshold: int) -> List[Product]:
        return self.find_all(lambda p: p.is_low_stock(threshold))


class CategoryRepository(DictRepository[Category]):
    """Repository for product categories: {category_id: Category}"""

    def next_id(self) -> str:
        return uuid.uuid4().hex

    def get_by_name(self, name: str) -> Optional[Category]:
        wanted = (name or '').strip().lower()
        return self.find_first(lambda c: c.name.strip().lower() == wanted)
