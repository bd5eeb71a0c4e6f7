"""Patient model definitions."""

from sqlalchemy import Column, Integer, String
from clinic.database import Base


class Patient(Base):
    """Represents a registered patient."""
    __tablename__ = "patients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
