# madrasah_admin/models/shared/madrasah.py
"""Tenant (madrasah) model definition."""
from sqlalchemy import Column, String, UniqueConstraint
from sqlalchemy.orm import validates
from ..base import Base

class Madrasah(Base):
    __tablename__ = "madrasah"

    name = Column(String(200), nullable=False)
    # Business-assigned short code, globally unique
    madrasah_id = Column(String(50), nullable=False, unique=True, index=True)
    logo_url = Column(String(500))
    address = Column(String(500))
    contact = Column(String(50))
    email = Column(String(254))
    # Public base URL used when building invite links
    base_url = Column(String(500))

    @validates('madrasah_id')
    def validate_code(self, key, value):
        if not value or not value.strip():
            raise ValueError("Madrasah code cannot be empty")
        return value.strip().upper()

    __table_args__ = (
        UniqueConstraint('madrasah_id', name='uq_madrasah_code'),
    )
