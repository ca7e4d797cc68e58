"""
网站收藏服务
"""

import logging
from datetime import datetime
from typing import Dict, Any, List

from sqlalchemy import select, func, update

from ..models.database import Language
from .base import CrudService

logger = logging.getLogger(__name__)


class WebsiteService(CrudService):
    """网站 CRUD + 统计 / 批量启停"""

    unique_name = True
    label = "Website"

    async def top(self, limit: int = 10) -> List[Dict[str, Any]]:
        """按 display_order 取前 N 个启用网站"""
        return await self.list_all(limit=limit)

    async def bulk_set_active(self, ids: List[str], active: bool, user_id: str = "system") -> int:
        """批量启用 / 停用，返回受影响行数"""
        async with self.session_factory() as session:
            result = await session.execute(
                update(self.model)
                .where(self.model.id.in_(ids))
                .values(is_active=active, updated_by=user_id, updated_at=datetime.now())
            )
            await session.commit()
        logger.info(f"批量{'启用' if active else '停用'}网站: {result.rowcount}/{len(ids)}")
        return result.rowcount

    async def statistics(self) -> Dict[str, Any]:
        """总数 / 启用数 / 各语言数量"""
        async with self.session_factory() as session:
            result = await session.execute(
                select(self.model.lang, self.model.is_active, func.count())
                .group_by(self.model.lang, self.model.is_active)
            )
            rows = result.all()

        stats = {
            "totalWebsites": 0,
            "activeWebsites": 0,
            "inactiveWebsites": 0,
            "websitesByLanguage": {lang.value: 0 for lang in Language},
        }
        for lang, is_active, count in rows:
            stats["totalWebsites"] += count
            stats["activeWebsites" if is_active else "inactiveWebsites"] += count
            stats["websitesByLanguage"][lang.value] += count
        return stats
