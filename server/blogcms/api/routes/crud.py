"""
通用 CRUD 路由

每个内容模块的管理接口形状相同，由 build_crud_router() 按模块生成:

    GET    ""                      分页搜索
    GET    /all                    全部启用记录
    GET    /by-language/{lang}     某语言的启用记录 (同 /active/{lang})
    POST   "" | /upload            创建 (JSON 或 multipart)
    GET    /{id}                   详情
    PUT    /{id}                   部分更新
    DELETE /{id}?hard=false        软删除 / 物理删除
    DELETE /{id}/permanent         物理删除
    PATCH  /{id}/activate          启用
    PATCH  /{id}/deactivate        停用
"""

import logging
from typing import Dict, NamedTuple, Optional, Sequence, Type

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ...models.response import ErrorCode, BusinessException, NotFoundException, success_response
from ...services import CrudService
from ..deps import service_dependency, get_user_id, PageParams, SearchFilters
from . import parse_language, read_payload, file_response

logger = logging.getLogger(__name__)


class FileView(NamedTuple):
    """文件访问路由: path 下的 {filename} 由服务的 resolver 方法解析为本地路径"""
    path: str
    resolver: str
    ranged: bool = False
    attachment: bool = False


def add_file_view(router: APIRouter, get_service, view: FileView) -> None:
    async def serve_file(filename: str, request: Request, service=Depends(get_service)):
        path = getattr(service, view.resolver)(filename)
        return file_response(path, request if view.ranged else None, attachment=view.attachment)

    router.add_api_route(view.path, serve_file, methods=["GET"], name=f"{view.resolver}:{view.path}")


def build_crud_router(
    service_name: str,
    create_model: Type[BaseModel],
    update_model: Type[BaseModel],
    *,
    file_fields: Optional[Dict[str, str]] = None,
    update_file_fields: Optional[Dict[str, str]] = None,
    views: Sequence[FileView] = (),
    toggles: bool = True,
) -> APIRouter:
    """
    生成模块的 CRUD 路由

    Args:
        service_name: app.state.services 中的服务名
        file_fields: multipart 文件字段 -> 服务参数名
        update_file_fields: PUT 接受的文件字段，None 时同 file_fields
        views: 文件访问路由
        toggles: 是否提供 activate / deactivate
    """
    router = APIRouter()
    get_service = service_dependency(service_name)
    if update_file_fields is None:
        update_file_fields = file_fields

    # ========== 列表 ==========

    @router.get("")
    async def search(
        filters: SearchFilters = Depends(),
        paging: PageParams = Depends(),
        service: CrudService = Depends(get_service),
    ):
        """分页搜索"""
        result = await service.search(filters.values, **paging.as_kwargs())
        return success_response(data=result)

    @router.get("/all")
    async def list_all(
        lang: Optional[str] = Query(None, description="语言: EN, ZH"),
        service: CrudService = Depends(get_service),
    ):
        """全部启用记录，按 displayOrder 排序"""
        return success_response(data=await service.list_all(lang=parse_language(lang)))

    async def list_by_language(lang: str, service: CrudService = Depends(get_service)):
        """某语言的启用记录"""
        language = parse_language(lang, required=True)
        return success_response(data=await service.list_all(lang=language))

    router.add_api_route("/by-language/{lang}", list_by_language, methods=["GET"])
    router.add_api_route("/active/{lang}", list_by_language, methods=["GET"], name="list_active")

    for view in views:
        add_file_view(router, get_service, view)

    # ========== 创建 ==========

    async def create(
        request: Request,
        service: CrudService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ):
        """创建记录，multipart 请求可附带文件"""
        payload, files = await read_payload(request, create_model, file_fields)
        data = await service.create(payload.changes(), user_id, **files)
        return success_response(data=data, message=f"{service.label} created successfully")

    router.add_api_route("", create, methods=["POST"])
    router.add_api_route("/upload", create, methods=["POST"], name="upload")

    # ========== 单条记录 ==========

    @router.get("/{entity_id}")
    async def get_one(entity_id: str, service: CrudService = Depends(get_service)):
        """详情 (包括已停用记录)"""
        data = await service.get(entity_id)
        if not data:
            raise NotFoundException(f"{service.label} not found")
        return success_response(data=data)

    @router.put("/{entity_id}")
    async def update(
        entity_id: str,
        request: Request,
        service: CrudService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ):
        """部分更新，只覆盖非空字段"""
        payload, files = await read_payload(request, update_model, update_file_fields)
        changes = payload.changes()
        if not changes and not files:
            raise BusinessException(ErrorCode.INVALID_PARAMS, "No fields to update")

        data = await service.update(entity_id, changes, user_id, **files)
        if data is None:
            raise NotFoundException(f"{service.label} not found")
        return success_response(data=data, message=f"{service.label} updated successfully")

    @router.delete("/{entity_id}")
    async def delete(
        entity_id: str,
        hard: bool = Query(False, description="是否物理删除 (同时删除文件)"),
        service: CrudService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ):
        """删除，默认软删除"""
        if not await service.delete(entity_id, hard=hard, user_id=user_id):
            raise NotFoundException(f"{service.label} not found")
        return success_response(message=f"{service.label} deleted successfully")

    @router.delete("/{entity_id}/permanent")
    async def delete_permanent(
        entity_id: str,
        service: CrudService = Depends(get_service),
        user_id: str = Depends(get_user_id),
    ):
        """物理删除记录及其文件"""
        if not await service.delete(entity_id, hard=True, user_id=user_id):
            raise NotFoundException(f"{service.label} not found")
        return success_response(message=f"{service.label} permanently deleted")

    if toggles:
        def toggle(active: bool):
            async def set_active(
                entity_id: str,
                service: CrudService = Depends(get_service),
                user_id: str = Depends(get_user_id),
            ):
                data = await service.set_active(entity_id, active, user_id)
                if data is None:
                    raise NotFoundException(f"{service.label} not found")
                return success_response(data=data)
            return set_active

        router.add_api_route("/{entity_id}/activate", toggle(True), methods=["PATCH"], name="activate")
        router.add_api_route("/{entity_id}/deactivate", toggle(False), methods=["PATCH"], name="deactivate")

    return router
