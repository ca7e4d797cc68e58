"""
依赖注入

FastAPI 依赖注入函数
"""

from typing import Optional

from fastapi import Request, Query

from ..services import CrudService
from .routes import parse_language

DEFAULT_USER = "system"


def service_dependency(name: str):
    """按名称获取模块服务的依赖"""

    async def _get_service(request: Request) -> CrudService:
        return request.app.state.services[name]

    _get_service.__name__ = f"get_{name}_service"
    return _get_service


async def get_user_id(request: Request) -> str:
    """
    当前用户 ID

    由外部 JWT 组件写入 request.state.user_id，或通过 X-User-Id 头传入；
    都没有时记为 system
    """
    user_id = getattr(request.state, "user_id", None) or request.headers.get("X-User-Id")
    return user_id or DEFAULT_USER


class PageParams:
    """分页参数 (page 从 0 开始)"""

    def __init__(
        self,
        page: int = Query(0, ge=0, description="页码，从 0 开始"),
        size: int = Query(20, ge=1, le=1000, description="每页数量"),
        sort: str = Query("updatedAt", description="排序字段"),
        direction: str = Query("desc", description="排序方向"),
    ):
        self.page = page
        self.size = size
        self.sort = sort
        self.direction = direction

    def as_kwargs(self) -> dict:
        return {"page": self.page, "size": self.size, "sort": self.sort, "direction": self.direction}


class SearchFilters:
    """列表过滤参数，实体上不存在的字段由服务忽略"""

    def __init__(
        self,
        name: Optional[str] = Query(None, description="名称关键字"),
        title: Optional[str] = Query(None, description="标题关键字"),
        question: Optional[str] = Query(None, description="题干关键字"),
        keyword: Optional[str] = Query(None, description="搜索关键词"),
        lang: Optional[str] = Query(None, description="语言: EN, ZH"),
        tags: Optional[str] = Query(None, description="标签关键字"),
        is_active: Optional[bool] = Query(None, alias="isActive", description="是否启用"),
        difficulty_level: Optional[str] = Query(None, alias="difficultyLevel"),
        term: Optional[int] = Query(None),
        week: Optional[int] = Query(None),
        part_of_speech: Optional[str] = Query(None, alias="partOfSpeech"),
        article_id: Optional[str] = Query(None, alias="articleId"),
    ):
        self.values = {
            "keyword": name or title or question or keyword,
            "lang": parse_language(lang),
            "tags": tags,
            "is_active": is_active,
            "difficulty_level": difficulty_level,
            "term": term,
            "week": week,
            "part_of_speech": part_of_speech,
            "article_id": article_id,
        }
