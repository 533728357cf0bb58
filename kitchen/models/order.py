import sqlalchemy as sa
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from kitchen.core.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True, index=True)  # ORD-2024-0001

    customer_id = Column(Integer, ForeignKey("customers.id"), index=True, nullable=False)
    # snapshot at creation time
    customer_name = Column(String(100), nullable=False, default="")
    customer_phone = Column(String(20), nullable=False, default="")
    customer_email = Column(String(255), nullable=True)

    order_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    delivery_date = Column(Date, index=True, nullable=False)
    delivery_address = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)

    # stored redundantly, recomputed only when items are written
    total_amount = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)

    # NEW / CONFIRMED / PREPARING / READY / DELIVERED / CANCELLED
    status = Column(String(20), nullable=False, default="NEW", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="orders")
    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    history = relationship(
        "OrderHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="(OrderHistory.created_at.desc(), OrderHistory.id.desc())",
    )


class OrderHistory(Base):
    __tablename__ = "order_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(128), nullable=False, default="system")
    # created / status_change / item_added / item_removed / item_updated / order_updated
    action = Column(String(30), nullable=False)
    details = Column(JSONB().with_variant(sa.JSON(), "sqlite"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="history")


class OrderCounter(Base):
    __tablename__ = "order_counters"

    year = Column(Integer, primary_key=True, autoincrement=False)
    count = Column(Integer, nullable=False, default=0)
