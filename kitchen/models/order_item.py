from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from kitchen.core.database import Base


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    dish_id = Column(Integer, ForeignKey("dishes.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    # snapshot of the dish price when the item was written
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    notes = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="order_items")
    dish = relationship("Dish")
