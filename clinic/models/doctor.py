"""Doctor model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from clinic.database import Base


class Doctor(Base):
    """Represents a clinic doctor."""
    __tablename__ = "doctors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    full_name = Column(String(100), nullable=False)
    specialty = Column(String(100), nullable=False)
    availability = Column(Boolean, nullable=False, default=True)
    phone = Column(String(30))
