"""
Shared fixtures.
"""
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import create_tables
from app.core.errors import RenderError
from app.schemas.certificate import CertificateData


def make_cert(**overrides) -> CertificateData:
    data = {
        "nombre": "Ana María López",
        "curso": "Matemáticas Básicas",
        "horas": 20,
        "matricula": "20231045",
        "curp": "LOMA000101MDFPRNA1",
        "start_date": "06/enero/2025",
        "end_date": "11/febrero/2025",
        "emision": "2025-02-12",
        "vencimiento": "2026-02-12",
    }
    data.update(overrides)
    return CertificateData(**data)


class FakeRenderer:
    """Stands in for CertificateRenderer; one fake PDF per record."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batch_calls: list[list[CertificateData]] = []
        self.single_calls: list[CertificateData] = []

    def render(self, data: CertificateData) -> bytes:
        self.single_calls.append(data)
        if self.fail:
            raise RenderError("renderer crashed")
        return f"%PDF-fake {data.cuv}".encode()

    def render_batch(self, items: list[CertificateData]) -> list[bytes]:
        self.batch_calls.append(list(items))
        if self.fail:
            raise RenderError("renderer crashed")
        return [f"%PDF-fake {d.cuv}".encode() for d in items]


@pytest.fixture
def sample_certificate() -> CertificateData:
    return make_cert()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest_asyncio.fixture
async def db_session():
    """In-memory SQLite session with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)

    Session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session

    await engine.dispose()
