"""
题目服务

CMS 问答与 Ru 各题型共用；Ru 题型额外维护答对 / 答错次数
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import update

from .base import CrudService

logger = logging.getLogger(__name__)


class QuestionService(CrudService):
    """题目 CRUD，关键字搜索针对题干"""

    name_field = "question"
    label = "Question"

    def _defaults(self) -> Dict[str, Any]:
        defaults = super()._defaults()
        if self.has_column("success_count"):
            defaults.update(success_count=0, fail_count=0)
        if self.has_column("is_multiple_correct"):
            defaults["is_multiple_correct"] = False
        return defaults

    async def create(self, data: Dict[str, Any], user_id: str = "system") -> Dict[str, Any]:
        values = dict(data)
        # 统计字段只能通过 record_attempt 修改
        values.pop("success_count", None)
        values.pop("fail_count", None)
        if self.has_column("is_multiple_correct") and values.get("is_multiple_correct") is None:
            answers = values.get("correct_answers") or ""
            values["is_multiple_correct"] = "," in answers
        return await super().create(values, user_id)

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        values = {k: v for k, v in data.items() if k not in ("success_count", "fail_count")}
        return await super().update(entity_id, values, user_id)

    async def record_attempt(self, entity_id: str, success: bool) -> bool:
        """答对 / 答错计数 +1 (原子更新)，题目不存在返回 False"""
        if not self.has_column("success_count"):
            return False

        column = self.model.success_count if success else self.model.fail_count
        async with self.session_factory() as session:
            result = await session.execute(
                update(self.model)
                .where(self.model.id == entity_id)
                .values({column: column + 1, self.model.updated_at: datetime.now()})
            )
            await session.commit()

        found = result.rowcount > 0
        if found:
            logger.info(f"{self.label} {entity_id} {'答对' if success else '答错'} +1")
        return found
