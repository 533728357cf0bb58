from sqlalchemy import Column, DateTime, Float, Integer, Numeric, String, func

from kitchen.core.database import Base


class Ingredient(Base):
    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    unit = Column(String(20), nullable=False)  # kg / gram / liter / ml / unit
    current_stock = Column(Float, nullable=True)
    min_stock = Column(Float, nullable=True)
    cost_per_unit = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    supplier = Column(String(100), nullable=True)
    category = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
