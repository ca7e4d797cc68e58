"""
BlogCMS Server - 主应用入口

基于 FastAPI 的博客 / 学习平台内容管理服务
"""

import uuid
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine

from . import __version__
from .api import register_routes
from .config import Settings, get_settings
from .models import Base
from .models.response import BusinessException, error_response
from .services import build_services
from .utils.logger import setup_logging, request_id_var

logger = logging.getLogger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """创建数据库引擎，连接池参数只用于 MySQL"""
    options = {"echo": False}
    if not settings.database.is_sqlite:
        options.update(
            pool_size=settings.database.pool_size,
            pool_recycle=settings.database.pool_recycle,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.database.url, **options)


async def init_state(app: FastAPI, engine: AsyncEngine, settings: Settings) -> None:
    """建表并把数据库和模块服务挂到 app.state"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.services = build_services(session_factory, settings.storage)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings: Settings = app.state.settings

    logger.info("=" * 50)
    logger.info("BlogCMS Server 启动中...")
    logger.info("=" * 50)

    logger.info("初始化数据库连接...")
    engine = create_engine(settings)
    await init_state(app, engine, settings)

    logger.info(f"已加载 {len(app.state.services)} 个模块服务")
    logger.info(f"文件存储根目录: {settings.storage.root}")
    logger.info(f"HTTP 端口: {settings.server.http_port}")
    logger.info("BlogCMS Server 启动完成!")

    yield

    logger.info("BlogCMS Server 关闭中...")
    await engine.dispose()
    logger.info("BlogCMS Server 已关闭")


def _field_errors(errors) -> list:
    return [
        {"field": ".".join(str(l) for l in e["loc"]), "msg": e["msg"]}
        for e in errors
    ]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """创建 FastAPI 应用"""
    settings = settings or get_settings()
    setup_logging(level=settings.log.level, structured=settings.log.structured)

    app = FastAPI(
        title="BlogCMS Server",
        description="博客 / 学习平台内容管理服务",
        version=__version__,
        lifespan=lifespan,
        debug=settings.server.debug,
    )
    app.state.settings = settings

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # request_id 中间件
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    # 全局异常处理器
    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        if exc.http_status >= 500:
            logger.error(f"业务异常: {exc.code.name} {exc.message}")
        return JSONResponse(
            status_code=exc.http_status,
            content=error_response(exc.http_status, exc.message, exc.detail),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.status_code, str(exc.detail)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_response(400, "Validation error", _field_errors(exc.errors())),
        )

    @app.exception_handler(ValidationError)
    async def model_validation_exception_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content=error_response(400, "Validation error", _field_errors(exc.errors())),
        )

    # 由 ServerErrorMiddleware 调用，此时 request_id 中间件已退出
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"未处理异常 [{request_id}]: {exc}", exc_info=True)
        response = JSONResponse(
            status_code=500,
            content=error_response(500, "Server error", request_id=request_id),
        )
        if request_id:
            response.headers["X-Request-ID"] = request_id
        return response

    # 注册路由
    register_routes(app)

    return app


# 创建应用实例
app = create_app()


def run():
    """运行 HTTP 服务器"""
    settings = get_settings()
    uvicorn.run(
        "blogcms.main:app",
        host=settings.server.host,
        port=settings.server.http_port,
        reload=settings.server.debug,
        log_level="info",
    )


if __name__ == "__main__":
    run()
