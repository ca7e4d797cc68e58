"""
公开 API 路由

只读: 启用记录的分页列表和详情、公开配置、题目答对 / 答错计数；
以及各模块文件的公开访问 (音视频支持 Range)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models.response import NotFoundException, success_response
from ...services import CrudService, QuestionService, AppSettingService
from ..deps import service_dependency, PageParams, SearchFilters
from . import parse_language
from .crud import FileView, add_file_view

logger = logging.getLogger(__name__)


# 列表路径 -> 服务名
CMS_LISTINGS = {
    "articles": "article",
    "article-images": "article_image",
    "audios": "audio",
    "videos": "video",
    "images": "image",
    "logos": "logo",
    "files": "file",
    "questions": "question",
    "websites": "website",
}

RU_LISTINGS = {
    "article-rus": "article_ru",
    "article-image-rus": "article_image_ru",
    "audio-rus": "audio_ru",
    "video-rus": "video_ru",
    "image-rus": "image_ru",
    "vocabulary-rus": "vocabulary_ru",
    "expression-rus": "expression_ru",
    "sentence-rus": "sentence_ru",
    "multiple-choice-question-rus": "multiple_choice_question_ru",
    "free-text-question-rus": "free_text_question_ru",
    "true-false-question-rus": "true_false_question_ru",
    "fill-blank-question-rus": "fill_blank_question_ru",
    "question-image-rus": "question_image_ru",
}

COUNTED_QUESTIONS = {
    "multiple-choice-question-rus": "multiple_choice_question_ru",
    "free-text-question-rus": "free_text_question_ru",
    "true-false-question-rus": "true_false_question_ru",
    "fill-blank-question-rus": "fill_blank_question_ru",
}


def add_listing(router: APIRouter, path: str, service_name: str) -> None:
    """启用记录的分页列表 + 详情"""
    get_service = service_dependency(service_name)

    async def list_active(
        filters: SearchFilters = Depends(),
        paging: PageParams = Depends(),
        service: CrudService = Depends(get_service),
    ):
        values = dict(filters.values)
        if service.has_column("is_active"):
            values["is_active"] = True
        return success_response(data=await service.search(values, **paging.as_kwargs()))

    async def get_active(entity_id: str, service: CrudService = Depends(get_service)):
        data = await service.get(entity_id)
        if not data or data.get("isActive") is False:
            raise NotFoundException(f"{service.label} not found")
        return success_response(data=data)

    router.add_api_route(path, list_active, methods=["GET"], name=f"public_list:{path}")
    router.add_api_route(f"{path}/{{entity_id}}", get_active, methods=["GET"], name=f"public_get:{path}")


def add_attempt_counter(router: APIRouter, path: str, service_name: str) -> None:
    """答对 / 答错计数 +1"""
    get_service = service_dependency(service_name)

    def counter(success: bool):
        async def record(entity_id: str, service: QuestionService = Depends(get_service)):
            if not await service.record_attempt(entity_id, success):
                raise NotFoundException(f"{service.label} not found")
            return success_response(data=await service.get(entity_id))
        return record

    router.add_api_route(f"{path}/{{entity_id}}/success", counter(True), methods=["PUT"],
                         name=f"increment_success:{path}")
    router.add_api_route(f"{path}/{{entity_id}}/fail", counter(False), methods=["PUT"],
                         name=f"increment_fail:{path}")


def build_listing_router() -> APIRouter:
    """挂载在 /v1/public 和 /v1/open 下"""
    router = APIRouter()
    get_app_setting_service = service_dependency("app_setting")

    @router.get("/app-settings")
    async def public_app_settings(
        lang: Optional[str] = Query(None, description="语言: EN, ZH"),
        service: AppSettingService = Depends(get_app_setting_service),
    ):
        """公开配置"""
        return success_response(data=await service.list_public(parse_language(lang)))

    # 计数接口先于详情注册
    for path, service_name in COUNTED_QUESTIONS.items():
        add_attempt_counter(router, f"/{path}", service_name)
    for path, service_name in CMS_LISTINGS.items():
        add_listing(router, f"/cms/{path}", service_name)
    for path, service_name in RU_LISTINGS.items():
        add_listing(router, f"/{path}", service_name)
    return router


def build_asset_router() -> APIRouter:
    """公开文件访问，路径与服务返回的文件 URL 一致"""
    router = APIRouter()

    for prefix, suffix in (("", ""), ("/rubi", "_ru")):
        assets = (
            (f"article{suffix}", FileView(f"{prefix}/articles/cover-images/{{filename}}", "cover_path")),
            (f"article_image{suffix}", FileView(f"{prefix}/articles/content-images/{{filename}}", "image_path")),
            (f"audio{suffix}", FileView(f"{prefix}/audios/cover-images/{{filename}}", "cover_path")),
            (f"audio{suffix}", FileView(f"{prefix}/audios/{{filename}}", "media_path", ranged=True)),
            (f"video{suffix}", FileView(f"{prefix}/videos/cover-images/{{filename}}", "cover_path")),
            (f"video{suffix}", FileView(f"{prefix}/videos/{{filename}}", "media_path", ranged=True)),
            (f"image{suffix}", FileView(f"{prefix}/images/{{filename}}", "image_path")),
        )
        for service_name, view in assets:
            add_file_view(router, service_dependency(service_name), view)

    for service_name, view in (
        ("logo", FileView("/logos/{filename}", "logo_path")),
        ("file", FileView("/files/{filename}", "media_path", attachment=True)),
        ("vocabulary_ru", FileView("/rubi/vocabularies/images/{filename}", "image_path")),
        ("vocabulary_ru", FileView("/rubi/vocabularies/audios/{filename}", "audio_path", ranged=True)),
        ("question_image_ru", FileView("/rubi/question-images/{filename}", "image_path")),
    ):
        add_file_view(router, service_dependency(service_name), view)
    return router
