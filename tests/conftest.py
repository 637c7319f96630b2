import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config.settings import settings
from app.models.base import Base
from app.utils.database import get_db, create_tables
from app.api.dependencies import get_recording_storage
from app.services.language_service import LanguageService
from app.utils.storage_client import LocalRecordingStorage

# 测试数据库
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 测试中降低bcrypt轮数
settings.BCRYPT_ROUNDS = 4

TEST_SENTENCES = [
    "The sun rises in the east.",
    "Water boils at one hundred degrees.",
    "Birds fly south in winter.",
]


def make_wav(seconds: float = 1.0, sample_rate: int = 16000, amplitude: float = 0.5,
             noise: float = 0.01, seed: int = 0) -> bytes:
    """生成前半段只有噪声、后半段为440Hz正弦波的WAV"""
    rng = np.random.default_rng(seed)
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    samples = noise * rng.standard_normal(t.size)
    half = t.size // 2
    samples[half:] += amplitude * np.sin(2 * np.pi * 440 * t[half:])
    buffer = io.BytesIO()
    sf.write(buffer, samples.astype(np.float32), sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


@pytest.fixture(scope="function")
def db_session():
    """创建测试数据库会话"""
    create_tables(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
    # 清理表
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def storage(tmp_path):
    return LocalRecordingStorage(str(tmp_path / "storage"))


@pytest.fixture(scope="function")
def language(db_session):
    return LanguageService(db_session).create_language("English", TEST_SENTENCES)


@pytest.fixture(scope="function")
def client(db_session, storage):
    """创建测试客户端"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recording_storage] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_headers(client):
    response = client.post("/api/v1/admin/login", json={"password": "admin"})
    assert response.status_code == 200
    return {"X-Admin-Token": response.json()["token"]}


@pytest.fixture
def wav_bytes():
    return make_wav()


@pytest.fixture
def wav_factory():
    return make_wav
