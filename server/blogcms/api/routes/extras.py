"""
模块专属管理接口

通用 CRUD 之外的查询与批量操作，需在对应 CRUD 路由之前注册，
避免 /{id} 路由抢先匹配静态路径
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models.schemas import BulkIdsRequest, AppSettingValueRequest
from ...models.response import ErrorCode, BusinessException, NotFoundException, success_response
from ...services import WebsiteService, LogoService, AppSettingService, CrudService
from ..deps import service_dependency, get_user_id
from . import parse_language

logger = logging.getLogger(__name__)


# ========== 网站 ==========

website_router = APIRouter()
get_website_service = service_dependency("website")


@website_router.get("/by-tag")
async def websites_by_tag(
    tag: str = Query(..., min_length=1, description="标签"),
    service: WebsiteService = Depends(get_website_service),
):
    """按标签查找启用网站"""
    return success_response(data=await service.list_all(filters={"tags": tag}))


@website_router.get("/top")
async def top_websites(
    limit: int = Query(10, ge=1, le=100, description="数量"),
    service: WebsiteService = Depends(get_website_service),
):
    """按 displayOrder 取前 N 个启用网站"""
    return success_response(data=await service.top(limit))


@website_router.get("/statistics")
async def website_statistics(service: WebsiteService = Depends(get_website_service)):
    """网站统计"""
    return success_response(data=await service.statistics())


async def _bulk_set_active(request: BulkIdsRequest, active: bool, service: WebsiteService, user_id: str):
    updated = await service.bulk_set_active(request.ids, active, user_id)
    return success_response(data={"updated": updated})


@website_router.patch("/bulk/activate")
async def bulk_activate_websites(
    request: BulkIdsRequest,
    service: WebsiteService = Depends(get_website_service),
    user_id: str = Depends(get_user_id),
):
    """批量启用"""
    return await _bulk_set_active(request, True, service, user_id)


@website_router.patch("/bulk/deactivate")
async def bulk_deactivate_websites(
    request: BulkIdsRequest,
    service: WebsiteService = Depends(get_website_service),
    user_id: str = Depends(get_user_id),
):
    """批量停用"""
    return await _bulk_set_active(request, False, service, user_id)


# ========== Logo ==========

logo_router = APIRouter()
get_logo_service = service_dependency("logo")


@logo_router.get("/search")
async def search_logos(
    keyword: str = Query(..., min_length=1, description="名称关键字"),
    service: LogoService = Depends(get_logo_service),
):
    """按名称关键字搜索"""
    return success_response(data=await service.search_by_keyword(keyword))


@logo_router.get("/tag")
async def logos_by_tag(
    tag: str = Query(..., min_length=1, description="标签"),
    service: LogoService = Depends(get_logo_service),
):
    """按标签查找"""
    return success_response(data=await service.find_by_tag(tag))


# ========== 文章配图 ==========

def build_article_image_router(service_name: str) -> APIRouter:
    router = APIRouter()
    get_service = service_dependency(service_name)

    @router.get("/by-article/{article_id}")
    async def images_by_article(article_id: str, service: CrudService = Depends(get_service)):
        """某篇文章的全部配图"""
        return success_response(data=await service.list_all(filters={"article_id": article_id}))

    return router


# ========== 题目配图 ==========

question_image_router = APIRouter()
get_question_image_service = service_dependency("question_image_ru")

QUESTION_ID_COLUMNS = {
    "mcq": "multiple_choice_question_id",
    "saq": "free_text_question_id",
    "true-false": "true_false_question_id",
    "fill-blank": "fill_blank_question_id",
}


@question_image_router.get("/by-question/{question_type}/{question_id}")
async def images_by_question(
    question_type: str,
    question_id: str,
    service: CrudService = Depends(get_question_image_service),
):
    """
    某道题的配图

    question_type: mcq / saq / true-false / fill-blank
    """
    column = QUESTION_ID_COLUMNS.get(question_type)
    if column is None:
        raise BusinessException(ErrorCode.INVALID_PARAMS, f"Unknown question type: {question_type}")
    return success_response(data=await service.list_all(filters={column: question_id}))


# ========== 应用配置 ==========

app_setting_router = APIRouter()
get_app_setting_service = service_dependency("app_setting")


@app_setting_router.get("/by-name")
async def settings_by_name(
    name: str = Query(..., min_length=1),
    service: AppSettingService = Depends(get_app_setting_service),
):
    """同名配置的全部语言版本"""
    return success_response(data=await service.list_by_name(name))


@app_setting_router.get("/by-name/{name}")
async def setting_by_name(
    name: str,
    lang: str = Query("EN", description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
):
    """按 (name, lang) 获取配置"""
    language = parse_language(lang, required=True)
    setting = await service.get_by_name(name, language)
    if not setting:
        raise NotFoundException(f"App setting not found: {name}")
    return success_response(data=setting)


@app_setting_router.get("/public")
async def public_settings(
    lang: Optional[str] = Query(None, description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
):
    """公开配置"""
    return success_response(data=await service.list_public(parse_language(lang)))


@app_setting_router.get("/public/{lang}")
async def public_settings_by_language(
    lang: str,
    service: AppSettingService = Depends(get_app_setting_service),
):
    return success_response(data=await service.list_public(parse_language(lang, required=True)))


@app_setting_router.get("/user-editable")
async def user_editable_settings(
    lang: Optional[str] = Query(None, description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
):
    """非系统配置"""
    return success_response(data=await service.list_user_editable(parse_language(lang)))


@app_setting_router.get("/user-editable/{lang}")
async def user_editable_settings_by_language(
    lang: str,
    service: AppSettingService = Depends(get_app_setting_service),
):
    return success_response(
        data=await service.list_user_editable(parse_language(lang, required=True))
    )


@app_setting_router.get("/value")
async def get_setting_value(
    name: str = Query(..., min_length=1),
    lang: str = Query("EN", description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
):
    """只取配置值"""
    language = parse_language(lang, required=True)
    if not await service.exists(name, language):
        raise NotFoundException(f"App setting not found: {name}")
    value = await service.get_value(name, language)
    return success_response(data={"name": name, "lang": language.value, "value": value})


@app_setting_router.put("/value")
async def set_setting_value(
    request: AppSettingValueRequest,
    service: AppSettingService = Depends(get_app_setting_service),
    user_id: str = Depends(get_user_id),
):
    """按名称更新配置值"""
    setting = await service.set_value(request.name, request.lang, request.value, user_id)
    return success_response(data=setting, message="App setting value updated successfully")


@app_setting_router.get("/names")
async def setting_names(service: AppSettingService = Depends(get_app_setting_service)):
    """全部配置名 (去重)"""
    return success_response(data=await service.distinct_names())


@app_setting_router.get("/statistics")
async def setting_statistics(service: AppSettingService = Depends(get_app_setting_service)):
    return success_response(data=await service.statistics())


@app_setting_router.get("/exists")
async def setting_exists(
    name: str = Query(..., min_length=1),
    lang: str = Query("EN", description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
):
    exists = await service.exists(name, parse_language(lang, required=True))
    return success_response(data={"exists": exists})


@app_setting_router.delete("/by-name")
async def delete_setting_by_name(
    name: str = Query(..., min_length=1),
    lang: str = Query("EN", description="语言: EN, ZH"),
    service: AppSettingService = Depends(get_app_setting_service),
    user_id: str = Depends(get_user_id),
):
    """按 (name, lang) 删除，系统配置不可删除"""
    if not await service.delete_by_name(name, parse_language(lang, required=True), user_id):
        raise NotFoundException(f"App setting not found: {name}")
    return success_response(message="App setting deleted successfully")
