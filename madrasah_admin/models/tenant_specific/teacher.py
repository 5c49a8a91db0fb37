# madrasah_admin/models/tenant_specific/teacher.py
from sqlalchemy import Column, String, ForeignKey, Uuid
from ..base import Base

class Teacher(Base):
    __tablename__ = "teachers"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    qualification = Column(String(500))
    subject = Column(String(200))
    contact = Column(String(50))
    email = Column(String(254))
    address = Column(String(500))
