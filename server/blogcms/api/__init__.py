"""
BlogCMS API 层

MODULES 描述每个内容模块的路由前缀、服务、请求模型和文件访问路由，
register_routes() 据此挂载管理接口、公开接口和健康检查
"""

from typing import NamedTuple, Optional, Sequence, Dict, Type

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel

from ..models import schemas as s
from .routes.crud import FileView, build_crud_router
from .routes import extras, health, public


class Module(NamedTuple):
    prefixes: Sequence[str]
    service: str
    create_model: Type[BaseModel]
    update_model: Type[BaseModel]
    file_fields: Dict[str, str] = {}
    views: Sequence[FileView] = ()
    extra: Optional[APIRouter] = None
    toggles: bool = True
    # PUT 接受的文件字段，None 表示与创建相同
    update_file_fields: Optional[Dict[str, str]] = None


ARTICLE_FILES = {"coverImageFile": "cover", "file": "cover"}
MEDIA_FILES = {"file": "file", "coverImageFile": "cover"}
SINGLE_FILE = {"file": "file"}
NO_FILES: Dict[str, str] = {}
VOCABULARY_FILES = {"imageFile": "image", "wordImageFile": "image", "phoneticAudioFile": "audio"}

ARTICLE_VIEWS = (FileView("/cover/{filename}", "cover_path"),)
IMAGE_VIEWS = (FileView("/view/{filename}", "image_path"),)
MEDIA_VIEWS = (
    FileView("/view/{filename}", "media_path", ranged=True),
    FileView("/cover/{filename}", "cover_path"),
)


MODULES = (
    # ========== CMS ==========
    Module(("/v1/articles",), "article", s.ArticleCreateRequest, s.ArticleUpdateRequest,
           ARTICLE_FILES, ARTICLE_VIEWS),
    Module(("/v1/article-images",), "article_image", s.AttachedImageCreateRequest,
           s.AttachedImageUpdateRequest, SINGLE_FILE, IMAGE_VIEWS,
           extra=extras.build_article_image_router("article_image"), update_file_fields=NO_FILES),
    Module(("/v1/audios",), "audio", s.AudioCreateRequest, s.AudioUpdateRequest,
           MEDIA_FILES, MEDIA_VIEWS),
    Module(("/v1/videos",), "video", s.VideoCreateRequest, s.VideoUpdateRequest,
           MEDIA_FILES, MEDIA_VIEWS),
    Module(("/v1/images",), "image", s.ImageCreateRequest, s.ImageUpdateRequest,
           SINGLE_FILE, IMAGE_VIEWS, update_file_fields=NO_FILES),
    Module(("/v1/logos",), "logo", s.LogoCreateRequest, s.LogoUpdateRequest,
           SINGLE_FILE, (FileView("/view/{filename}", "logo_path"),), extra=extras.logo_router,
           update_file_fields=NO_FILES),
    Module(("/v1/files",), "file", s.FileCreateRequest, s.FileUpdateRequest,
           SINGLE_FILE, (FileView("/download/{filename}", "media_path", attachment=True),)),
    Module(("/v1/questions",), "question", s.QuestionCreateRequest, s.QuestionUpdateRequest),
    Module(("/v1/websites",), "website", s.WebsiteCreateRequest, s.WebsiteUpdateRequest,
           extra=extras.website_router),
    Module(("/v1/app-settings",), "app_setting", s.AppSettingCreateRequest,
           s.AppSettingUpdateRequest, extra=extras.app_setting_router, toggles=False),

    # ========== Ru ==========
    Module(("/v1/article-rus",), "article_ru", s.ArticleCreateRequest, s.ArticleUpdateRequest,
           ARTICLE_FILES, ARTICLE_VIEWS),
    Module(("/v1/article-image-rus",), "article_image_ru", s.AttachedImageCreateRequest,
           s.AttachedImageUpdateRequest, SINGLE_FILE, IMAGE_VIEWS,
           extra=extras.build_article_image_router("article_image_ru"), update_file_fields=NO_FILES),
    Module(("/v1/audio-rus",), "audio_ru", s.AudioCreateRequest, s.AudioUpdateRequest,
           MEDIA_FILES, MEDIA_VIEWS),
    Module(("/v1/video-rus",), "video_ru", s.VideoCreateRequest, s.VideoUpdateRequest,
           MEDIA_FILES, MEDIA_VIEWS),
    Module(("/v1/image-rus",), "image_ru", s.ImageCreateRequest, s.ImageUpdateRequest,
           SINGLE_FILE, IMAGE_VIEWS, update_file_fields=NO_FILES),
    Module(("/v1/vocabulary-rus", "/v1/vocabularies"), "vocabulary_ru",
           s.VocabularyCreateRequest, s.VocabularyUpdateRequest, VOCABULARY_FILES, (
               FileView("/images/{filename}", "image_path"),
               FileView("/audios/{filename}", "audio_path", ranged=True),
           )),
    Module(("/v1/expression-rus",), "expression_ru", s.ExpressionCreateRequest,
           s.ExpressionUpdateRequest),
    Module(("/v1/sentence-rus",), "sentence_ru", s.SentenceCreateRequest, s.SentenceUpdateRequest),
    Module(("/v1/multiple-choice-question-rus", "/v1/ru/mcqs", "/v1/rubi/mcqs"),
           "multiple_choice_question_ru", s.MultipleChoiceCreateRequest,
           s.MultipleChoiceUpdateRequest),
    Module(("/v1/free-text-question-rus", "/v1/ru/saqs", "/v1/rubi/saqs"),
           "free_text_question_ru", s.FreeTextCreateRequest, s.FreeTextUpdateRequest),
    Module(("/v1/true-false-question-rus",), "true_false_question_ru",
           s.TrueFalseCreateRequest, s.TrueFalseUpdateRequest),
    Module(("/v1/fill-blank-question-rus",), "fill_blank_question_ru",
           s.FillBlankCreateRequest, s.FillBlankUpdateRequest),
    Module(("/v1/question-image-rus", "/v1/rubi/question-images"), "question_image_ru",
           s.AttachedImageCreateRequest, s.AttachedImageUpdateRequest, SINGLE_FILE, IMAGE_VIEWS,
           extra=extras.question_image_router, update_file_fields=NO_FILES),
)


def register_routes(app: FastAPI) -> None:
    """挂载全部路由"""
    app.include_router(health.router, tags=["health"])

    for module in MODULES:
        router = build_crud_router(
            module.service,
            module.create_model,
            module.update_model,
            file_fields=module.file_fields,
            update_file_fields=module.update_file_fields,
            views=module.views,
            toggles=module.toggles,
        )
        for prefix in module.prefixes:
            tag = prefix.rsplit("/", 1)[-1]
            # 专属路由先注册，避免被 /{id} 抢先匹配
            if module.extra is not None:
                app.include_router(module.extra, prefix=prefix, tags=[tag])
            app.include_router(router, prefix=prefix, tags=[tag])

    listing = public.build_listing_router()
    app.include_router(listing, prefix="/v1/public", tags=["public"])
    app.include_router(listing, prefix="/v1/open", tags=["open"])
    app.include_router(public.build_asset_router(), prefix="/v1/public", tags=["public-files"])


__all__ = ["MODULES", "Module", "register_routes"]
