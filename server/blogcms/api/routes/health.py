"""
健康检查路由
"""

import logging

from fastapi import APIRouter, Request
from sqlalchemy import text

from ... import __version__
from ...models.response import success_response

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """健康检查接口"""
    return success_response(data={"status": "ok", "version": __version__})


@router.get("/ready")
async def readiness_check(request: Request):
    """就绪检查接口 (数据库连通性)"""
    checks = {"database": False}

    try:
        engine = request.app.state.engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        logger.error(f"数据库检查失败: {e}")

    all_ready = all(checks.values())

    return success_response(data={
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
    })
