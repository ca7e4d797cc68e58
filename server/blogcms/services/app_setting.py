"""
应用配置服务

(name, lang) 唯一；系统配置 (is_system) 不可删除，
更新时除非请求显式携带 is_system，否则拒绝修改
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import select, func, and_

from ..models.database import Language
from ..models.response import ErrorCode, BusinessException, NotFoundException
from .base import CrudService

logger = logging.getLogger(__name__)


class AppSettingService(CrudService):
    """应用配置 CRUD"""

    unique_name = True
    label = "App setting"

    def _defaults(self) -> Dict[str, Any]:
        return {"lang": Language.EN, "is_system": False, "is_public": False}

    def _not_unique_message(self, name: str, lang: Language) -> str:
        return f"App setting already exists with name: {name} and language: {lang.value}"

    async def _find_by_name(self, session, name: str, lang: Language):
        result = await session.execute(
            select(self.model).where(and_(self.model.name == name, self.model.lang == lang))
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        setting = await self.find(entity_id)
        if not setting:
            return None
        if setting.is_system and data.get("is_system") is None:
            raise BusinessException(
                ErrorCode.SYSTEM_SETTING_LOCKED, f"System setting cannot be modified: {setting.name}"
            )
        return await super().update(entity_id, data, user_id)

    async def delete(self, entity_id: str, hard: bool = True, user_id: str = "system") -> bool:
        setting = await self.find(entity_id)
        if not setting:
            return False
        if setting.is_system:
            raise BusinessException(
                ErrorCode.SYSTEM_SETTING_LOCKED, f"System setting cannot be deleted: {setting.name}"
            )
        return await super().delete(entity_id, hard=True, user_id=user_id)

    async def delete_by_name(self, name: str, lang: Language, user_id: str = "system") -> bool:
        async with self.session_factory() as session:
            setting = await self._find_by_name(session, name, lang)
        if not setting:
            return False
        return await self.delete(setting.id, user_id=user_id)

    async def get_by_name(self, name: str, lang: Language) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as session:
            setting = await self._find_by_name(session, name, lang)
            return setting.to_dict() if setting else None

    async def get_value(self, name: str, lang: Language, default: Optional[str] = None) -> Optional[str]:
        setting = await self.get_by_name(name, lang)
        return setting["value"] if setting else default

    async def set_value(
        self,
        name: str,
        lang: Language,
        value: str,
        user_id: str = "system",
    ) -> Dict[str, Any]:
        """按名称更新值，系统配置不可修改"""
        async with self.session_factory() as session:
            setting = await self._find_by_name(session, name, lang)
            if not setting:
                raise NotFoundException(f"App setting not found: {name} ({lang.value})")
            if setting.is_system:
                raise BusinessException(
                    ErrorCode.SYSTEM_SETTING_LOCKED, f"System setting cannot be modified: {name}"
                )
            setting.value = value
            setting.updated_by = user_id
            setting.updated_at = datetime.now()
            await session.commit()
            logger.info(f"更新配置值: {name} ({lang.value})")
            return setting.to_dict()

    async def list_by_name(self, name: str) -> List[Dict[str, Any]]:
        return await self._list_where(self.model.name == name)

    async def list_public(self, lang: Optional[Language] = None) -> List[Dict[str, Any]]:
        return await self._list_where(self.model.is_public.is_(True), lang=lang)

    async def list_user_editable(self, lang: Optional[Language] = None) -> List[Dict[str, Any]]:
        return await self._list_where(self.model.is_system.is_(False), lang=lang)

    async def _list_where(self, condition, lang: Optional[Language] = None) -> List[Dict[str, Any]]:
        """按名称、语言排序"""
        conditions = [condition]
        if lang is not None:
            conditions.append(self.model.lang == lang)
        async with self.session_factory() as session:
            result = await session.execute(
                select(self.model).where(*conditions).order_by(self.model.name, self.model.lang)
            )
            return [s.to_dict() for s in result.scalars().all()]

    async def exists(self, name: str, lang: Language) -> bool:
        async with self.session_factory() as session:
            return await self._find_by_name(session, name, lang) is not None

    async def distinct_names(self) -> List[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(self.model.name).distinct().order_by(self.model.name)
            )
            return list(result.scalars().all())

    async def statistics(self) -> Dict[str, Any]:
        async with self.session_factory() as session:
            async def count(*conditions) -> int:
                query = select(func.count()).select_from(self.model)
                if conditions:
                    query = query.where(*conditions)
                return (await session.execute(query)).scalar()

            return {
                "totalSettings": await count(),
                "englishSettings": await count(self.model.lang == Language.EN),
                "chineseSettings": await count(self.model.lang == Language.ZH),
                "publicSettings": await count(self.model.is_public.is_(True)),
                "systemSettings": await count(self.model.is_system.is_(True)),
            }
