"""
BlogCMS 业务服务层

build_services() 为每个模块 (含 Ru 变体) 创建一个服务实例，
键名即 app.state.services 中的名字
"""

from typing import Dict

from ..config import StorageConfig
from ..models import database as db
from ..utils.storage import FileStorage
from .base import CrudService
from .media import MediaService
from .article import ArticleService
from .attached_image import AttachedImageService
from .media_file import AudioService, VideoService, FileService
from .image import ImageService
from .logo import LogoService
from .vocabulary import VocabularyService
from .question import QuestionService
from .website import WebsiteService
from .app_setting import AppSettingService

__all__ = [
    "CrudService",
    "MediaService",
    "ArticleService",
    "AttachedImageService",
    "AudioService",
    "VideoService",
    "FileService",
    "ImageService",
    "LogoService",
    "VocabularyService",
    "QuestionService",
    "WebsiteService",
    "AppSettingService",
    "build_services",
]


def build_services(session_factory, storage: StorageConfig) -> Dict[str, CrudService]:
    """创建全部模块服务"""

    def files(name: str, ru: bool = False) -> FileStorage:
        return FileStorage(storage.module_dir(name, ru), storage.download_timeout)

    services: Dict[str, CrudService] = {}

    for ru, suffix, prefix in ((False, "", "/v1/public"), (True, "_ru", "/v1/public/rubi")):
        services[f"article{suffix}"] = ArticleService(
            session_factory, db.ArticleRu if ru else db.Article, files("article", ru),
            base_url=f"{prefix}/articles/cover-images",
            cover_max_size=storage.cover_image_max_size,
        )
        services[f"article_image{suffix}"] = AttachedImageService(
            session_factory, db.ArticleImageRu if ru else db.ArticleImage, files("article_image", ru),
            base_url=f"{prefix}/articles/content-images",
            label="Article image",
            max_size=storage.image_max_size,
        )
        services[f"audio{suffix}"] = AudioService(
            session_factory, db.AudioRu if ru else db.Audio, files("audio", ru),
            base_url=f"{prefix}/audios",
            cover_url=f"{prefix}/audios/cover-images",
            cover_max_size=storage.cover_image_max_size,
        )
        services[f"video{suffix}"] = VideoService(
            session_factory, db.VideoRu if ru else db.Video, files("video", ru),
            base_url=f"{prefix}/videos",
            cover_url=f"{prefix}/videos/cover-images",
            cover_max_size=storage.cover_image_max_size,
        )
        services[f"image{suffix}"] = ImageService(
            session_factory, db.ImageRu if ru else db.Image, files("image", ru),
            base_url=f"{prefix}/images",
            max_size=storage.image_max_size,
            thumbnail_size=storage.thumbnail_size,
        )

    services["logo"] = LogoService(
        session_factory, db.Logo, files("logo"),
        base_url="/v1/public/logos",
        target_size=storage.logo_target_size,
        max_file_size=storage.logo_max_file_size,
    )
    services["file"] = FileService(
        session_factory, db.CmsFile, files("file"),
        base_url="/v1/public/files",
    )
    services["question"] = QuestionService(session_factory, db.Question)
    services["website"] = WebsiteService(session_factory, db.Website)
    services["app_setting"] = AppSettingService(session_factory, db.AppSetting)

    services["vocabulary_ru"] = VocabularyService(
        session_factory, db.VocabularyRu, files("vocabulary", ru=True),
        base_url="/v1/public/rubi/vocabularies",
        image_max_size=storage.image_max_size,
    )
    services["expression_ru"] = CrudService(session_factory, db.ExpressionRu, label="Expression")
    services["sentence_ru"] = CrudService(session_factory, db.SentenceRu, label="Sentence")
    services["multiple_choice_question_ru"] = QuestionService(
        session_factory, db.MultipleChoiceQuestionRu, label="Multiple choice question"
    )
    services["free_text_question_ru"] = QuestionService(
        session_factory, db.FreeTextQuestionRu, label="Free text question"
    )
    services["true_false_question_ru"] = QuestionService(
        session_factory, db.TrueFalseQuestionRu, label="True/false question"
    )
    services["fill_blank_question_ru"] = QuestionService(
        session_factory, db.FillBlankQuestionRu, label="Fill blank question"
    )
    services["question_image_ru"] = AttachedImageService(
        session_factory, db.QuestionImageRu, files("question_image", ru=True),
        base_url="/v1/public/rubi/question-images",
        label="Question image",
        max_size=storage.image_max_size,
    )
    return services
