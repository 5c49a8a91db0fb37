# tests/conftest.py
"""
Shared fixtures: a throwaway SQLite database per test, the FastAPI app
wired to it, and helpers that seed madrasahs, members and business rows.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-role-key")
os.environ["REDIS_URL"] = ""
os.environ.setdefault("LOG_LEVEL", "warning")

import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from madrasah_admin.core.database import get_db
from madrasah_admin.core.locks import tenant_locks
from madrasah_admin.core.rate_limiter import rate_limiter
from madrasah_admin.core.security import create_access_token
from madrasah_admin.main import app
from madrasah_admin.models import (
    Attendance, Base, ClassModel, ClassTeacher, Expense, Fee, Income, LearningReport,
    Loan, Madrasah, Profile, Salary, Student, Teacher, UserRoleAssignment,
)

SERVICE_KEY = "test-service-role-key"


@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'madrasah.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _reset_process_state():
    tenant_locks.reset()
    rate_limiter.reset()
    yield
    tenant_locks.reset()


@pytest.fixture
async def client(session_factory):
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user_id, madrasah_id=None):
    headers = {"Authorization": f"Bearer {create_access_token(user_id)}"}
    if madrasah_id is not None:
        headers["X-Madrasah-Id"] = str(madrasah_id)
    return headers


def service_headers():
    return {"Authorization": f"Bearer {SERVICE_KEY}"}


async def create_madrasah(db, code="MDR1", name="Madrasah Noor", base_url=None):
    madrasah = Madrasah(name=name, madrasah_id=code, base_url=base_url)
    db.add(madrasah)
    await db.commit()
    return madrasah


async def add_member(db, madrasah, role, user_id=None, full_name="Member", profile_role=None):
    """Profile plus user_roles row; ``role=None`` leaves the user without a role."""
    user_id = user_id or uuid.uuid4()
    db.add(Profile(
        user_id=user_id,
        madrasah_id=madrasah.id,
        full_name=full_name,
        role=profile_role or role or "user",
    ))
    if role is not None:
        db.add(UserRoleAssignment(user_id=user_id, madrasah_id=madrasah.id, role=role))
    await db.commit()
    return user_id


async def seed_business_data(db, madrasah, students=3, teachers=2, attendance=0):
    """Rows in every backup table that the counts allow, all owned by ``madrasah``."""
    teacher_rows = [
        Teacher(madrasah_id=madrasah.id, name=f"Ustadh {i}", subject="Fiqh", contact=f"0300{i}")
        for i in range(teachers)
    ]
    db.add_all(teacher_rows)
    await db.flush()

    class_row = ClassModel(
        madrasah_id=madrasah.id,
        name="Hifz A",
        teacher_id=teacher_rows[0].id if teacher_rows else None,
    )
    db.add(class_row)
    await db.flush()

    student_rows = [
        Student(
            madrasah_id=madrasah.id,
            class_id=class_row.id,
            name=f"Student {i}",
            father_name=f"Father {i}",
            roll_number=str(i + 1),
            class_name="Hifz A",
            date_of_birth=date(2012, 1, i + 1),
        )
        for i in range(students)
    ]
    db.add_all(student_rows)
    await db.flush()

    for teacher in teacher_rows:
        db.add(ClassTeacher(madrasah_id=madrasah.id, class_id=class_row.id, teacher_id=teacher.id))
        db.add(Salary(madrasah_id=madrasah.id, teacher_id=teacher.id, month=1, year=2024, amount=Decimal("25000.00")))
    if teacher_rows:
        db.add(Loan(madrasah_id=madrasah.id, teacher_id=teacher_rows[0].id, amount=Decimal("5000.00"), loan_date=date(2024, 1, 10)))

    for student in student_rows:
        db.add(Fee(madrasah_id=madrasah.id, student_id=student.id, month=1, year=2024, amount=Decimal("1500.00")))
        db.add(LearningReport(
            madrasah_id=madrasah.id,
            student_id=student.id,
            date=date(2024, 1, 15),
            class_type="hifz",
            sabaq_para_number=3,
            sabaq_amount="1 page",
        ))
    for i in range(attendance):
        db.add(Attendance(
            madrasah_id=madrasah.id,
            student_id=student_rows[i % len(student_rows)].id,
            date=date(2024, 1, 1 + i),
            status="present",
        ))

    db.add(Income(madrasah_id=madrasah.id, title="Donation", category="donation", amount=Decimal("10000.00"), date=date(2024, 1, 5)))
    db.add(Expense(madrasah_id=madrasah.id, title="Books", category="supplies", amount=Decimal("2500.50"), date=date(2024, 1, 6)))
    await db.commit()
    return {"students": student_rows, "teachers": teacher_rows, "class": class_row}


async def count_rows(db, model, madrasah):
    result = await db.execute(select(func.count()).select_from(model).where(model.madrasah_id == madrasah.id))
    return result.scalar()
