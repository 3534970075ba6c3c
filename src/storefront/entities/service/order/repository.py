from collections.abc import Iterable

from sqlmodel import Session, col, func, or_, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.core.profile import Profile, ProfileTable
from src.storefront.entities.service.order.entity import Order, OrderItem, OrderStatus
from src.storefront.entities.service.order.table import OrderItemTable, OrderTable


class OrderRepository:
    """Data-access layer for orders and their items."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, order_id: str) -> Order | None:
        row = self._session.get(OrderTable, order_id)
        if row is None:
            return None
        return Order.model_validate(row, from_attributes=True)

    def get_for_user(self, order_id: str, user_id: str) -> Order | None:
        order = self.get(order_id)
        if order is None or order.user_id != user_id:
            return None
        return order

    def get_by_idempotency_key(self, user_id: str, key: str) -> Order | None:
        statement = select(OrderTable).where(
            (OrderTable.user_id == user_id) & (OrderTable.idempotency_key == key)
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Order.model_validate(row, from_attributes=True)

    def create(self, order: Order, items: Iterable[OrderItem] = ()) -> Order:
        row = OrderTable(**order.model_dump())
        self._session.add(row)
        for item in items:
            self._session.add(OrderItemTable(**item.model_dump()))
        self._session.flush()
        self._session.refresh(row)
        return Order.model_validate(row, from_attributes=True)

    def update(self, order: Order) -> Order:
        row = self._session.get(OrderTable, order.id)
        if row is None:
            raise ValueError(f"Order {order.id} does not exist")
        for field, value in order.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Order.model_validate(row, from_attributes=True)

    def items(self, order_id: str) -> list[OrderItem]:
        statement = (
            select(OrderItemTable)
            .where(OrderItemTable.order_id == order_id)
            .order_by(col(OrderItemTable.created_at))
        )
        return [
            OrderItem.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def list_for_user(self, user_id: str, limit: int = 10, offset: int = 0) -> list[Order]:
        statement = (
            select(OrderTable)
            .where(OrderTable.user_id == user_id)
            .order_by(col(OrderTable.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        return [
            Order.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def user_totals(self, user_id: str) -> tuple[int, float]:
        """Return the number of orders and the amount spent outside cancelled ones."""
        count = self._session.exec(
            select(func.count()).select_from(OrderTable).where(OrderTable.user_id == user_id)
        ).one()
        spent = self._session.exec(
            select(func.coalesce(func.sum(OrderTable.total_amount), 0))
            .where(OrderTable.user_id == user_id)
            .where(OrderTable.status != OrderStatus.CANCELLED.value)
        ).one()
        return count, round(float(spent), 2)

    def search_with_customer(
        self,
        *,
        status: str | None = None,
        payment_method: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[tuple[Order, Profile | None]], int]:
        """Page through orders joined with their customer profile."""
        conditions = []
        if status:
            conditions.append(OrderTable.status == status)
        if payment_method:
            conditions.append(OrderTable.payment_method == payment_method)
        if search:
            term = search.strip().lower()
            conditions.append(
                or_(
                    func.lower(OrderTable.id).contains(term, autoescape=True),
                    func.lower(OrderTable.transaction_id).contains(term, autoescape=True),
                    func.lower(ProfileTable.full_name).contains(term, autoescape=True),
                    func.lower(ProfileTable.email).contains(term, autoescape=True),
                )
            )

        join_on = ProfileTable.id == OrderTable.user_id
        total = self._session.exec(
            select(func.count())
            .select_from(OrderTable)
            .join(ProfileTable, join_on, isouter=True)
            .where(*conditions)
        ).one()

        statement = (
            select(OrderTable, ProfileTable)
            .join(ProfileTable, join_on, isouter=True)
            .where(*conditions)
            .order_by(col(OrderTable.created_at).desc())
            .offset(offset)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return self._with_customer(self._session.exec(statement)), total

    def _with_customer(self, rows) -> list[tuple[Order, Profile | None]]:
        return [
            (
                Order.model_validate(order_row, from_attributes=True),
                Profile.model_validate(profile_row, from_attributes=True)
                if profile_row is not None
                else None,
            )
            for order_row, profile_row in rows
        ]

    def count(self, status: str | None = None) -> int:
        statement = select(func.count()).select_from(OrderTable)
        if status:
            statement = statement.where(OrderTable.status == status)
        return self._session.exec(statement).one()

    def revenue(self) -> float:
        total = self._session.exec(
            select(func.coalesce(func.sum(OrderTable.total_amount), 0)).where(
                OrderTable.status != OrderStatus.CANCELLED.value
            )
        ).one()
        return round(float(total), 2)

    def totals_by_payment_method(
        self, statuses: Iterable[str] | None = None
    ) -> dict[str, tuple[int, float]]:
        """Return ``{method: (order_count, amount)}``, optionally for some statuses."""
        statement = select(
            OrderTable.payment_method,
            func.count(),
            func.coalesce(func.sum(OrderTable.total_amount), 0),
        ).group_by(OrderTable.payment_method)
        if statuses is not None:
            statement = statement.where(col(OrderTable.status).in_(list(statuses)))
        return {
            method: (count, round(float(amount), 2))
            for method, count, amount in self._session.exec(statement)
        }
