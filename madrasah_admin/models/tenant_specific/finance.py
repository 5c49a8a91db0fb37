# madrasah_admin/models/tenant_specific/finance.py
"""Fee collection, income/expense ledgers, payroll and loans."""
from sqlalchemy import Column, String, Text, Date, Integer, Numeric, ForeignKey, Uuid, CheckConstraint
from ..base import Base


class Fee(Base):
    __tablename__ = "fees"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0)
    status = Column(String(20), nullable=False, default="unpaid")
    payment_date = Column(Date)
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint('month BETWEEN 1 AND 12', name='ck_fee_month'),
        CheckConstraint('amount >= 0', name='ck_fee_amount_positive'),
    )


class Income(Base):
    __tablename__ = "income"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text)


class Expense(Base):
    __tablename__ = "expense"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text)


class Salary(Base):
    __tablename__ = "salaries"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    payment_date = Column(Date)
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint('month BETWEEN 1 AND 12', name='ck_salary_month'),
    )


class Loan(Base):
    __tablename__ = "loans"

    madrasah_id = Column(Uuid, ForeignKey("madrasah.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0)
    loan_date = Column(Date, nullable=False)
    return_date = Column(Date)
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text)
