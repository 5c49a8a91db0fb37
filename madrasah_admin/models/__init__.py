"""Import all models here so Base.metadata is complete (Alembic, backup table registry)."""
from .base import Base

# Shared models
from .shared.madrasah import Madrasah
from .shared.access import Profile, UserRoleAssignment, Invite
from .shared.backup import Backup, BackupType

# Tenant-specific models
from .tenant_specific.student import Student
from .tenant_specific.teacher import Teacher
from .tenant_specific.class_model import ClassModel, ClassTeacher
from .tenant_specific.attendance import Attendance
from .tenant_specific.finance import Fee, Income, Expense, Salary, Loan
from .tenant_specific.learning_report import LearningReport

__all__ = [
    "Base",
    "Madrasah",
    "Profile",
    "UserRoleAssignment",
    "Invite",
    "Backup",
    "BackupType",
    "Student",
    "Teacher",
    "ClassModel",
    "ClassTeacher",
    "Attendance",
    "Fee",
    "Income",
    "Expense",
    "Salary",
    "Loan",
    "LearningReport",
]
