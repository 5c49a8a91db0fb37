# madrasah_admin/models/tenant_specific/learning_report.py
from sqlalchemy import Column, String, Text, Date, Integer, ForeignKey, Uuid
from ..base import Base

class LearningReport(Base):
    __tablename__ = "learning_reports"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    class_type = Column(String(50), nullable=False)  # hifz / nazra / dars-e-nizami

    # Hifz progress: new lesson (sabaq), recent revision (sabqi), old revision (manzil)
    sabaq_para_number = Column(Integer)
    sabaq_lines_pages = Column(String(100))
    sabaq_amount = Column(String(100))
    sabqi_para = Column(Integer)
    sabqi_amount = Column(String(100))
    manzil_paras = Column(String(100))
    manzil_amount = Column(String(100))

    # Dars-e-nizami period notes
    period_1 = Column(Text)
    period_2 = Column(Text)
    period_3 = Column(Text)
    period_4 = Column(Text)
    period_5 = Column(Text)
    period_6 = Column(Text)

    notes = Column(Text)
