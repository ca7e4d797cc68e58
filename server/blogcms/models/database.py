"""
数据库模型定义

使用 SQLAlchemy 2.0 异步模式

表分两组:
- cms_* / bm_*: 博客 CMS 模块
- rubi_*: Ru 平台变体，与 CMS 对应表结构一致，另有学习类实体
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional, Any, Dict

from pydantic.alias_generators import to_camel
from sqlalchemy import (
    String, Integer, BigInteger, Text, DateTime, Boolean,
    Index, UniqueConstraint
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy 基类"""
    pass


def ValueEnum(enum_class):
    """
    创建使用 enum value (而非 name) 存储的 SQLAlchemy Enum

    Python Enum:  TRUE = "TRUE"
    存储:         "TRUE" (value)
    """
    return SAEnum(
        enum_class,
        values_callable=lambda x: [e.value for e in x]
    )


def new_id() -> str:
    """生成 UUID 字符串主键"""
    return str(uuid.uuid4())


class Language(PyEnum):
    """内容语言"""
    EN = "EN"
    ZH = "ZH"


class TrueFalseAnswer(PyEnum):
    """判断题答案"""
    TRUE = "TRUE"
    FALSE = "FALSE"


# ============================================
# 公共列
# ============================================
class AuditMixin:
    """主键 + 语言 + 审计字段"""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    lang: Mapped[Language] = mapped_column(ValueEnum(Language), default=Language.EN, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        """按列输出 camelCase 字典"""
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, PyEnum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            result[to_camel(column.key)] = value
        return result


class EntityMixin(AuditMixin):
    """内容实体通用列: 排序 + 软删除标记 + 标签"""

    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    tags: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)  # 逗号分隔


class ArticleColumns:
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cover_image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cover_image_original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class AttachedImageColumns:
    """挂在其他实体下的图片 (文章配图、题目配图)"""
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class AudioColumns:
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    cover_image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    subtitle: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class VideoColumns:
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    cover_image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 秒


class ImageColumns:
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    thumbnail_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    extension: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class StudyColumns:
    """Ru 学习类内容的学期/周次/难度"""
    term: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    difficulty_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class AttemptColumns(StudyColumns):
    """答题统计"""
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    success_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    fail_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


# ============================================
# CMS 表
# ============================================
class Article(EntityMixin, ArticleColumns, Base):
    """文章"""
    __tablename__ = "cms_article"

    __table_args__ = (
        Index("idx_cms_article_lang", "lang"),
        Index("idx_cms_article_active", "is_active"),
    )


class ArticleImage(EntityMixin, AttachedImageColumns, Base):
    """文章配图"""
    __tablename__ = "cms_article_image"

    article_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    article_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_cms_article_image_article", "article_id"),
    )


class Audio(EntityMixin, AudioColumns, Base):
    """音频"""
    __tablename__ = "cms_audio"

    __table_args__ = (
        Index("idx_cms_audio_name", "name"),
    )


class Video(EntityMixin, VideoColumns, Base):
    """视频"""
    __tablename__ = "cms_video"

    __table_args__ = (
        Index("idx_cms_video_name", "name"),
    )


class Image(EntityMixin, ImageColumns, Base):
    """图片 (主图 + 缩略图)"""
    __tablename__ = "cms_image"

    __table_args__ = (
        Index("idx_cms_image_name", "name"),
    )


class Logo(EntityMixin, Base):
    """Logo"""
    __tablename__ = "cms_logo"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    extension: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    __table_args__ = (
        Index("idx_cms_logo_name", "name"),
    )


class CmsFile(EntityMixin, Base):
    """通用文件"""
    __tablename__ = "cms_file"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    extension: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class Question(EntityMixin, Base):
    """问答"""
    __tablename__ = "cms_question"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Website(EntityMixin, Base):
    """网站收藏"""
    __tablename__ = "cms_website"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "lang", name="uk_cms_website_name_lang"),
    )


class AppSetting(AuditMixin, Base):
    """应用配置项 (无软删除)"""
    __tablename__ = "bm_app_settings"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("name", "lang", name="uk_bm_app_settings_name_lang"),
    )


# ============================================
# Ru 表
# ============================================
class ArticleRu(EntityMixin, ArticleColumns, Base):
    """文章 (Ru)"""
    __tablename__ = "rubi_article"

    term: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ArticleImageRu(EntityMixin, AttachedImageColumns, Base):
    """文章配图 (Ru)"""
    __tablename__ = "rubi_article_image"

    article_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    article_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_rubi_article_image_article", "article_id"),
    )


class AudioRu(EntityMixin, AudioColumns, Base):
    """音频 (Ru)"""
    __tablename__ = "rubi_audio"

    artist: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class VideoRu(EntityMixin, VideoColumns, Base):
    """视频 (Ru)"""
    __tablename__ = "rubi_video"


class ImageRu(EntityMixin, ImageColumns, Base):
    """图片 (Ru)"""
    __tablename__ = "rubi_image"


class VocabularyRu(EntityMixin, StudyColumns, Base):
    """单词"""
    __tablename__ = "rubi_vocabulary"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phonetic: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    part_of_speech: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    noun_plural_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    noun_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    noun_meaning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    noun_example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    verb_simple_past_tense: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    verb_past_perfect_tense: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    verb_present_participle: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    verb_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    verb_meaning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verb_example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    adjective_comparative_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    adjective_superlative_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    adjective_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    adjective_meaning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    adjective_example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    adverb_form: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    adverb_meaning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    adverb_example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    translation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    synonyms: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    definition: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dictionary_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    image_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image_original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    phonetic_audio_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phonetic_audio_original_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "lang", name="uk_rubi_vocabulary_name_lang"),
        Index("idx_rubi_vocabulary_term_week", "term", "week"),
    )


class ExpressionRu(EntityMixin, Base):
    """短语"""
    __tablename__ = "rubi_expression"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phonetic: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    translation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    difficulty_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class SentenceRu(EntityMixin, StudyColumns, Base):
    """句子"""
    __tablename__ = "rubi_sentence"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    phonetic: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    translation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class MultipleChoiceQuestionRu(EntityMixin, AttemptColumns, Base):
    """选择题"""
    __tablename__ = "rubi_multiple_choice_question"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    option_a: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    option_b: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    option_c: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    option_d: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    correct_answers: Mapped[str] = mapped_column(String(20), nullable=False)  # 如 "A" 或 "A,C"
    is_multiple_correct: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class FreeTextQuestionRu(EntityMixin, AttemptColumns, Base):
    """简答题"""
    __tablename__ = "rubi_free_text_question"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TrueFalseQuestionRu(EntityMixin, AttemptColumns, Base):
    """判断题"""
    __tablename__ = "rubi_true_false_question"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[TrueFalseAnswer] = mapped_column(ValueEnum(TrueFalseAnswer), nullable=False)


class FillBlankQuestionRu(EntityMixin, AttemptColumns, Base):
    """填空题"""
    __tablename__ = "rubi_fill_blank_question"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    grammar_chapter: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    science_chapter: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class QuestionImageRu(EntityMixin, AttachedImageColumns, Base):
    """题目配图，可关联到任一题型"""
    __tablename__ = "rubi_question_image"

    multiple_choice_question_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    free_text_question_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    true_false_question_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    fill_blank_question_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    __table_args__ = (
        Index("idx_rubi_question_image_mcq", "multiple_choice_question_id"),
        Index("idx_rubi_question_image_ftq", "free_text_question_id"),
    )
