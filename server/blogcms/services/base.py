"""
通用 CRUD 服务

所有内容模块共用: 创建、部分更新、按 ID 查询、分页搜索、
按语言列出、软删除 / 物理删除、启用 / 停用
"""

import logging
import re
from datetime import datetime
from typing import Optional, List, Dict, Any, Type

from sqlalchemy import select, func, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models.database import Base, Language, new_id
from ..models.response import ErrorCode, BusinessException, page_result

logger = logging.getLogger(__name__)

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

# 不允许通过请求写入的列
PROTECTED_COLUMNS = {"id", "created_at", "created_by", "updated_at", "updated_by"}


def to_snake(name: str) -> str:
    return _CAMEL.sub("_", name).lower()


class CrudService:
    """
    单实体 CRUD 服务

    子类通过类属性定制:
    - name_field: 关键字搜索 / 唯一性校验使用的列
    - unique_name: 是否要求 (name_field, lang) 唯一
    - label: 日志和错误信息中的实体名
    """

    name_field: str = "name"
    unique_name: bool = False
    label: str = "Record"

    def __init__(self, session_factory, model: Type[Base], label: Optional[str] = None):
        """
        Args:
            session_factory: SQLAlchemy 异步会话工厂
            model: 实体类 (CMS 表或 Ru 表)
            label: 覆盖默认实体名
        """
        self.session_factory = session_factory
        self.model = model
        if label:
            self.label = label
        self._column_names = {c.key for c in model.__table__.columns}

    # ========================================
    # 工具方法
    # ========================================

    def has_column(self, name: str) -> bool:
        return name in self._column_names

    def _columns(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """只保留实体上存在、允许写入的列"""
        return {
            k: v for k, v in data.items()
            if k in self._column_names and k not in PROTECTED_COLUMNS
        }

    def _defaults(self) -> Dict[str, Any]:
        defaults = {"lang": Language.EN}
        if self.has_column("display_order"):
            defaults["display_order"] = 0
        if self.has_column("is_active"):
            defaults["is_active"] = True
        return defaults

    def _to_dict(self, entity) -> Dict[str, Any]:
        """实体转响应字典，子类可追加文件 URL 等字段"""
        return entity.to_dict()

    def _not_unique_message(self, name: str, lang: Language) -> str:
        return f"{self.label} with name '{name}' already exists for language '{lang.value}'"

    async def _check_unique(
        self,
        session,
        name: Optional[str],
        lang: Optional[Language],
        exclude_id: Optional[str] = None,
    ) -> None:
        """(name, lang) 唯一性校验"""
        if not self.unique_name or name is None:
            return
        lang = lang or Language.EN
        column = getattr(self.model, self.name_field)
        query = select(func.count()).select_from(self.model).where(
            and_(column == name, self.model.lang == lang)
        )
        if exclude_id:
            query = query.where(self.model.id != exclude_id)
        result = await session.execute(query)
        if result.scalar():
            raise BusinessException(
                ErrorCode.DUPLICATE_RESOURCE, self._not_unique_message(name, lang)
            )

    async def _get_entity(self, session, entity_id: str):
        return await session.get(self.model, entity_id)

    async def _commit(self, session) -> None:
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"{self.label} 约束冲突: {e.orig}")
            raise BusinessException(ErrorCode.DUPLICATE_RESOURCE, f"{self.label} already exists")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"{self.label} 写入失败: {e}")
            raise BusinessException(ErrorCode.DATABASE_ERROR, f"Failed to save {self.label}")

    def _build_conditions(self, filters: Dict[str, Any]) -> list:
        """
        filters -> WHERE 条件

        - name / keyword: 对 name_field 做不区分大小写的包含匹配
        - tags: 包含匹配
        - 其他实体列: 等值匹配
        - 值为 None 或实体不存在的列: 忽略
        """
        conditions = []
        for key, value in filters.items():
            if value is None or value == "":
                continue
            if key in ("name", "keyword"):
                column = getattr(self.model, self.name_field)
                conditions.append(func.lower(column).contains(str(value).lower()))
            elif key == "tags" and self.has_column("tags"):
                conditions.append(self.model.tags.contains(value))
            elif self.has_column(key):
                conditions.append(getattr(self.model, key) == value)
        return conditions

    def _order_by(self, sort: Optional[str], direction: Optional[str]):
        column_name = to_snake(sort) if sort else "updated_at"
        if not self.has_column(column_name):
            column_name = "updated_at"
        column = getattr(self.model, column_name)
        return column.asc() if (direction or "").lower() == "asc" else column.desc()

    # ========================================
    # 查询
    # ========================================

    async def find(self, entity_id: str):
        """按 ID 获取实体对象 (会话关闭后只读使用)"""
        async with self.session_factory() as session:
            return await self._get_entity(session, entity_id)

    async def get(self, entity_id: str) -> Optional[Dict[str, Any]]:
        """按 ID 获取 (包括已停用记录)"""
        async with self.session_factory() as session:
            entity = await self._get_entity(session, entity_id)
            return self._to_dict(entity) if entity else None

    async def search(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 0,
        size: int = 20,
        sort: Optional[str] = "updatedAt",
        direction: Optional[str] = "desc",
    ) -> Dict[str, Any]:
        """分页搜索 (page 从 0 开始)"""
        conditions = self._build_conditions(filters or {})
        where_clause = and_(*conditions) if conditions else True

        async with self.session_factory() as session:
            count_query = select(func.count()).select_from(self.model).where(where_clause)
            result = await session.execute(count_query)
            total = result.scalar()

            query = (
                select(self.model)
                .where(where_clause)
                .order_by(self._order_by(sort, direction))
                .offset(page * size)
                .limit(size)
            )
            result = await session.execute(query)
            items = result.scalars().all()

            return page_result([self._to_dict(e) for e in items], total, page, size)

    async def list_all(
        self,
        lang: Optional[Language] = None,
        active_only: bool = True,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """按 display_order 列出 (默认只含启用记录)"""
        conditions = self._build_conditions(filters or {})
        if lang:
            conditions.append(self.model.lang == lang)
        if active_only and self.has_column("is_active"):
            conditions.append(self.model.is_active.is_(True))

        async with self.session_factory() as session:
            query = select(self.model)
            if conditions:
                query = query.where(and_(*conditions))
            if self.has_column("display_order"):
                query = query.order_by(self.model.display_order, self.model.updated_at.desc())
            else:
                query = query.order_by(self.model.updated_at.desc())
            if limit:
                query = query.limit(limit)

            result = await session.execute(query)
            return [self._to_dict(e) for e in result.scalars().all()]

    # ========================================
    # 写入
    # ========================================

    async def create(self, data: Dict[str, Any], user_id: str = "system") -> Dict[str, Any]:
        """创建记录"""
        values = {**self._defaults(), **self._columns(data)}
        now = datetime.now()

        async with self.session_factory() as session:
            await self._check_unique(session, values.get(self.name_field), values.get("lang"))

            entity = self.model(
                id=new_id(),
                created_at=now,
                updated_at=now,
                created_by=user_id,
                updated_by=user_id,
                **values,
            )
            session.add(entity)
            await self._commit(session)

            logger.info(f"创建{self.label}: {entity.id}")
            return self._to_dict(entity)

    async def update(
        self,
        entity_id: str,
        data: Dict[str, Any],
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        """部分更新: 只覆盖非空字段"""
        changes = {k: v for k, v in self._columns(data).items() if v is not None}

        async with self.session_factory() as session:
            entity = await self._get_entity(session, entity_id)
            if not entity:
                return None

            name = changes.get(self.name_field, getattr(entity, self.name_field, None))
            lang = changes.get("lang", entity.lang)
            if self.name_field in changes or "lang" in changes:
                await self._check_unique(session, name, lang, exclude_id=entity_id)

            for key, value in changes.items():
                setattr(entity, key, value)
            entity.updated_by = user_id
            entity.updated_at = datetime.now()

            await self._commit(session)

            logger.info(f"更新{self.label}: {entity_id}, fields={list(changes.keys())}")
            return self._to_dict(entity)

    async def set_active(
        self,
        entity_id: str,
        active: bool,
        user_id: str = "system",
    ) -> Optional[Dict[str, Any]]:
        """启用 / 停用"""
        return await self.update(entity_id, {"is_active": active}, user_id)

    async def delete(self, entity_id: str, hard: bool = False, user_id: str = "system") -> bool:
        """
        删除记录

        Args:
            hard: True 删除行和关联文件；False 仅标记 is_active=False
        """
        async with self.session_factory() as session:
            entity = await self._get_entity(session, entity_id)
            if not entity:
                return False

            if hard or not self.has_column("is_active"):
                await session.delete(entity)
                await session.commit()
                await self._remove_files(entity)
                logger.info(f"物理删除{self.label}: {entity_id}")
            else:
                entity.is_active = False
                entity.updated_by = user_id
                entity.updated_at = datetime.now()
                await session.commit()
                logger.info(f"软删除{self.label}: {entity_id}")

            return True

    async def _remove_files(self, entity) -> None:
        """物理删除后的文件清理，由文件类服务实现"""
        pass
