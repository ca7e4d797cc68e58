"""
测试公共 fixtures
"""

import io
import sys
import os

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers, UploadFile

# 确保 server/ 目录在 Python 路径中
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from blogcms.config import Settings, DatabaseConfig, StorageConfig, LogConfig
from blogcms.main import create_app, init_state
from blogcms.models import Base
from blogcms.services import build_services

SQLITE_URL = "sqlite+aiosqlite://"


def make_image_bytes(size=(800, 600), fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    """生成测试图片字节"""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(data: bytes, filename: str, content_type: str = "application/octet-stream") -> UploadFile:
    """构造 multipart 上传文件对象"""
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def settings(tmp_path):
    """内存 SQLite + 临时上传目录"""
    return Settings(
        database=DatabaseConfig(override_url=SQLITE_URL),
        storage=StorageConfig(root=str(tmp_path / "uploads")),
        log=LogConfig(level="WARNING"),
    )


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def services(session_factory, settings):
    """全部模块服务，文件写入 tmp_path"""
    return build_services(session_factory, settings.storage)


@pytest_asyncio.fixture
async def app(settings, engine):
    """不经过 lifespan，直接初始化 app.state"""
    app = create_app(settings)
    await init_state(app, engine, settings)
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
