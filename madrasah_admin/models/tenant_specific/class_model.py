# madrasah_admin/models/tenant_specific/class_model.py
from sqlalchemy import Column, String, Text, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from ..base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text)

    teacher_links = relationship("ClassTeacher", back_populates="class_ref", lazy="raise")


class ClassTeacher(Base):
    __tablename__ = "class_teachers"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("class_id", "teacher_id", name="uq_class_teacher"),
    )

    class_ref = relationship("ClassModel", back_populates="teacher_links", lazy="raise")
