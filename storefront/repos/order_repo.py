# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.id)
            ).scalars()
        )

    def list_orders(
        self,
        user_id: int | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[OrderModel]:
        stmt = select(OrderModel)
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        if status is not None:
            stmt = stmt.where(OrderModel.status == status)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars())
