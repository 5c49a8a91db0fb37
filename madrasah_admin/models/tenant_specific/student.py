# madrasah_admin/models/tenant_specific/student.py
from sqlalchemy import Column, String, Date, ForeignKey, Uuid
from ..base import Base

class Student(Base):
    __tablename__ = "students"

    # Foreign Keys
    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    # Deferred so a restore may insert students before their classes within one transaction
    class_id = Column(
        Uuid,
        ForeignKey("classes.id", ondelete="SET NULL", deferrable=True, initially="DEFERRED"),
        nullable=True,
        index=True,
    )

    name = Column(String(200), nullable=False)
    father_name = Column(String(200), nullable=False)
    roll_number = Column(String(50), nullable=False)
    # Free-text class label kept alongside class_id
    class_name = Column("class", String(100), nullable=False)
    date_of_birth = Column(Date)
    contact = Column(String(50))
    address = Column(String(500))
