# madrasah_admin/models/tenant_specific/attendance.py
from sqlalchemy import Column, String, Text, Date, ForeignKey, Uuid, Index
from ..base import Base

class Attendance(Base):
    __tablename__ = "attendance"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)  # present / absent / leave
    time_slot = Column(String(50))
    notes = Column(Text)

    __table_args__ = (
        Index('idx_attendance_student_date', 'student_id', 'date'),
    )
