from sqlalchemy import (
    Column,
    Integer,
    String,
    JSON,
    DateTime,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# --- Durable cart mirror ---

class CartMirrorSlot(Base):
    """
    Flat key-value slot holding the stripped projection of one cart.

    payload is a JSON array of {id, kind, quantity, name, price}. There is no
    schema version: entries that do not parse are skipped on load.
    """
    __tablename__ = "cart_mirror_slots"

    id = Column(Integer, primary_key=True, index=True)
    slot_key = Column(String, unique=True, nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
