from collections.abc import Iterable

from sqlalchemy import update
from sqlmodel import Session, col, func, or_, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.service.product.entity import Product
from src.storefront.entities.service.product.table import ProductTable

SORTABLE_COLUMNS = {
    "created_at": ProductTable.created_at,
    "price": ProductTable.price,
    "name": ProductTable.name,
    "stock": ProductTable.stock,
}


class ProductRepository:
    """Data-access layer for products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        statement = select(ProductTable).where(col(ProductTable.id).in_(ids))
        return {
            row.id: Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        }

    def create(self, product: Product) -> Product:
        row = ProductTable(**product.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def update(self, product: Product) -> Product:
        row = self._session.get(ProductTable, product.id)
        if row is None:
            raise ValueError(f"Product {product.id} does not exist")
        for field, value in product.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def delete(self, product_id: str) -> bool:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def search(
        self,
        *,
        search: str | None = None,
        fields: tuple[str, ...] = ("name", "brand", "description"),
        category: str | None = None,
        brands: list[str] | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        in_stock: bool = False,
        sort_by: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Product], int]:
        """Filter, sort and page the catalog.

        Returns the requested page together with the total number of matches.
        """
        conditions = []
        if search:
            term = search.strip().lower()
            conditions.append(
                or_(
                    *(
                        func.lower(getattr(ProductTable, field)).contains(
                            term, autoescape=True
                        )
                        for field in fields
                    )
                )
            )
        if category:
            conditions.append(func.lower(ProductTable.category) == category.strip().lower())
        if brands:
            conditions.append(col(ProductTable.brand).in_(brands))
        if min_price is not None:
            conditions.append(ProductTable.price >= min_price)
        if max_price is not None:
            conditions.append(ProductTable.price <= max_price)
        if in_stock:
            conditions.append(ProductTable.stock > 0)

        count_statement = select(func.count()).select_from(ProductTable).where(*conditions)
        total = self._session.exec(count_statement).one()

        column = SORTABLE_COLUMNS.get(sort_by, ProductTable.created_at)
        order = col(column).desc() if descending else col(column).asc()
        statement = (
            select(ProductTable)
            .where(*conditions)
            .order_by(order, col(ProductTable.id))
            .offset(offset)
        )
        if limit is not None:
            statement = statement.limit(limit)

        products = [
            Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]
        return products, total

    def related(self, product: Product, limit: int = 4) -> list[Product]:
        statement = (
            select(ProductTable)
            .where(ProductTable.category == product.category)
            .where(ProductTable.id != product.id)
            .order_by(col(ProductTable.created_at).desc())
            .limit(limit)
        )
        return [
            Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def brands(self) -> list[str]:
        statement = select(ProductTable.brand).distinct().order_by(ProductTable.brand)
        return list(self._session.exec(statement))

    def categories(self) -> list[str]:
        statement = (
            select(ProductTable.category).distinct().order_by(ProductTable.category)
        )
        return list(self._session.exec(statement))

    def price_range(self) -> tuple[float, float]:
        statement = select(func.min(ProductTable.price), func.max(ProductTable.price))
        low, high = self._session.exec(statement).one()
        return float(low or 0), float(high or 0)

    def low_stock(self, threshold: int, limit: int = 10) -> list[Product]:
        statement = (
            select(ProductTable)
            .where(ProductTable.stock < threshold)
            .order_by(col(ProductTable.stock).asc(), col(ProductTable.name))
            .limit(limit)
        )
        return [
            Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(ProductTable)).one()

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Take ``quantity`` units if at least that many are left.

        The check and the write are one UPDATE statement, so two checkouts
        racing for the last units cannot both succeed.
        """
        statement = (
            update(ProductTable)
            .where(col(ProductTable.id) == product_id)
            .where(col(ProductTable.stock) >= quantity)
            .values(stock=ProductTable.stock - quantity, updated_at=utcnow())
        )
        result = self._session.execute(statement)
        return result.rowcount == 1

    def increment_stock(self, product_id: str, quantity: int) -> None:
        statement = (
            update(ProductTable)
            .where(col(ProductTable.id) == product_id)
            .values(stock=ProductTable.stock + quantity, updated_at=utcnow())
        )
        self._session.execute(statement)

