import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from academics.core.config import settings
from academics.core.models import AcademicRecord, Department, SchoolClass, SchoolYear, Student, Subject, Term
from academics.db.session import Base, get_db
from academics.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory schema per test; the app's get_db is overridden to hand out this session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def make_token(user_id: uuid.UUID, role: str) -> str:
    return jwt.encode(
        {"sub": str(user_id), "role": role},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def _bearer(user_id: uuid.UUID, role: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture()
def auth_headers():
    """Build bearer headers for any (user id, role) pair."""
    return _bearer


@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return _bearer(uuid.uuid4(), "ADMIN")


@pytest.fixture()
async def school(db_session: AsyncSession) -> SimpleNamespace:
    """
    A current school year with three terms, two classes, four subjects and two students in JHS 1.
    Only ids are exposed so tests never touch ORM instances expired by a rollback.
    """
    year = SchoolYear(
        name="2025-2026",
        start_date=date(2025, 9, 1),
        end_date=date(2026, 7, 31),
        is_current=True,
    )
    previous_year = SchoolYear(
        name="2024-2025",
        start_date=date(2024, 9, 1),
        end_date=date(2025, 7, 31),
        is_current=False,
    )
    db_session.add_all([year, previous_year])
    await db_session.flush()

    term_dates = [
        (date(2025, 9, 1), date(2025, 12, 15)),
        (date(2026, 1, 5), date(2026, 4, 1)),
        (date(2026, 4, 20), date(2026, 7, 31)),
    ]
    terms = [
        Term(school_year_id=year.id, name=f"Term {n}", sequence=n, start_date=start, end_date=end)
        for n, (start, end) in enumerate(term_dates, start=1)
    ]
    previous_term = Term(
        school_year_id=previous_year.id,
        name="Term 3",
        sequence=3,
        start_date=date(2025, 4, 1),
        end_date=date(2025, 7, 31),
    )
    department = Department(name="Mathematics & Science")
    jhs1 = SchoolClass(name="JHS 1", display_order=1)
    jhs2 = SchoolClass(name="JHS 2", display_order=2)
    db_session.add_all([*terms, previous_term, department, jhs1, jhs2])
    await db_session.flush()

    subjects = [
        Subject(name="Mathematics", code="MATH", department_id=department.id),
        Subject(name="Integrated Science", code="SCI", department_id=department.id),
        Subject(name="English Language", code="ENG"),
        Subject(name="Social Studies", code="SOC"),
    ]
    student_a = Student(full_name="Ama Mensah", student_number="S001", current_class_id=jhs1.id)
    student_b = Student(full_name="Kofi Boateng", student_number="S002", current_class_id=jhs1.id)
    db_session.add_all([*subjects, student_a, student_b])
    await db_session.commit()

    return SimpleNamespace(
        year_id=year.id,
        previous_year_id=previous_year.id,
        term1_id=terms[0].id,
        term2_id=terms[1].id,
        term3_id=terms[2].id,
        previous_term_id=previous_term.id,
        department_id=department.id,
        jhs1_id=jhs1.id,
        jhs2_id=jhs2.id,
        math_id=subjects[0].id,
        science_id=subjects[1].id,
        english_id=subjects[2].id,
        social_id=subjects[3].id,
        subject_ids=[s.id for s in subjects],
        student_a_id=student_a.id,
        student_b_id=student_b.id,
    )


@pytest.fixture()
def make_record(db_session: AsyncSession, school):
    """Factory inserting an AcademicRecord straight into storage. Defaults: JHS 1, Term 3, current year, published."""

    async def _make(
        student_id,
        subject_id,
        score,
        grade: str = "B",
        term_id=None,
        school_year_id=None,
        class_id=None,
        published: bool = True,
    ) -> uuid.UUID:
        record = AcademicRecord(
            student_id=student_id,
            subject_id=subject_id,
            class_id=class_id or school.jhs1_id,
            term_id=term_id or school.term3_id,
            school_year_id=school_year_id or school.year_id,
            final_score=Decimal(str(score)),
            final_grade=grade,
            is_published=published,
        )
        db_session.add(record)
        await db_session.commit()
        return record.id

    return _make
