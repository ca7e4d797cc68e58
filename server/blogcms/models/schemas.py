"""
Pydantic 请求模型

JSON 字段使用 camelCase，同时接受 snake_case;
multipart 表单字段按同样的名字解析
"""

from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .database import Language, TrueFalseAnswer


class RequestModel(BaseModel):
    """请求模型基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def changes(self) -> dict:
        """非空字段 (snake_case)，用于部分更新"""
        return self.model_dump(exclude_none=True)


class CommonFields(RequestModel):
    """所有内容实体共有的可选字段"""
    tags: Optional[str] = None
    lang: Optional[Language] = None
    display_order: Optional[int] = None


class UpdateCommonFields(CommonFields):
    is_active: Optional[bool] = None


# ========== 文章 ==========

class ArticleCreateRequest(CommonFields):
    """创建文章"""
    title: str = Field(..., min_length=1, max_length=255)
    summary: Optional[str] = None
    content: Optional[str] = None
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    cover_image_original_url: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None


class ArticleUpdateRequest(UpdateCommonFields):
    """更新文章"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    summary: Optional[str] = None
    content: Optional[str] = None
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    cover_image_original_url: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None


class AttachedImageCreateRequest(CommonFields):
    """文章配图 / 题目配图"""
    original_url: Optional[str] = None
    filename: Optional[str] = None
    article_id: Optional[str] = None
    article_title: Optional[str] = None
    multiple_choice_question_id: Optional[str] = None
    free_text_question_id: Optional[str] = None
    true_false_question_id: Optional[str] = None
    fill_blank_question_id: Optional[str] = None


class AttachedImageUpdateRequest(UpdateCommonFields):
    article_id: Optional[str] = None
    article_title: Optional[str] = None
    multiple_choice_question_id: Optional[str] = None
    free_text_question_id: Optional[str] = None
    true_false_question_id: Optional[str] = None
    fill_blank_question_id: Optional[str] = None


# ========== 音视频 / 文件 ==========

class AudioCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    filename: Optional[str] = None
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    description: Optional[str] = None
    subtitle: Optional[str] = None
    artist: Optional[str] = None


class AudioUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    description: Optional[str] = None
    subtitle: Optional[str] = None
    artist: Optional[str] = None


class VideoCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    filename: Optional[str] = None
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None


class VideoUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    description: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None


class FileCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    original_url: Optional[str] = None
    source_name: Optional[str] = None


class FileUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    original_url: Optional[str] = None
    source_name: Optional[str] = None


# ========== 图片 / Logo ==========

class ImageCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    original_url: Optional[str] = None
    source_name: Optional[str] = None
    alt_text: Optional[str] = None


class ImageUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    source_name: Optional[str] = None
    alt_text: Optional[str] = None
    extension: Optional[str] = None


class LogoCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    original_url: Optional[str] = None


class LogoUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


# ========== 单词 / 短语 / 句子 ==========

class VocabularyFields(RequestModel):
    phonetic: Optional[str] = None
    part_of_speech: Optional[str] = None
    noun_plural_form: Optional[str] = None
    noun_form: Optional[str] = None
    noun_meaning: Optional[str] = None
    noun_example: Optional[str] = None
    verb_simple_past_tense: Optional[str] = None
    verb_past_perfect_tense: Optional[str] = None
    verb_present_participle: Optional[str] = None
    verb_form: Optional[str] = None
    verb_meaning: Optional[str] = None
    verb_example: Optional[str] = None
    adjective_comparative_form: Optional[str] = None
    adjective_superlative_form: Optional[str] = None
    adjective_form: Optional[str] = None
    adjective_meaning: Optional[str] = None
    adjective_example: Optional[str] = None
    adverb_form: Optional[str] = None
    adverb_meaning: Optional[str] = None
    adverb_example: Optional[str] = None
    translation: Optional[str] = None
    synonyms: Optional[str] = None
    definition: Optional[str] = None
    example: Optional[str] = None
    dictionary_url: Optional[str] = None
    image_original_url: Optional[str] = None
    phonetic_audio_original_url: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None
    difficulty_level: Optional[str] = None


class VocabularyCreateRequest(VocabularyFields, CommonFields):
    name: str = Field(..., min_length=1, max_length=100)


class VocabularyUpdateRequest(VocabularyFields, UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class ExpressionCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    phonetic: Optional[str] = None
    translation: Optional[str] = None
    explanation: Optional[str] = None
    example: Optional[str] = None
    difficulty_level: Optional[str] = None


class ExpressionUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phonetic: Optional[str] = None
    translation: Optional[str] = None
    explanation: Optional[str] = None
    example: Optional[str] = None
    difficulty_level: Optional[str] = None


class SentenceCreateRequest(CommonFields):
    name: str = Field(..., min_length=1)
    phonetic: Optional[str] = None
    translation: Optional[str] = None
    explanation: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None
    difficulty_level: Optional[str] = None


class SentenceUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1)
    phonetic: Optional[str] = None
    translation: Optional[str] = None
    explanation: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None
    difficulty_level: Optional[str] = None


# ========== 题目 ==========

class QuestionCreateRequest(CommonFields):
    question: str = Field(..., min_length=1)
    answer: Optional[str] = None


class QuestionUpdateRequest(UpdateCommonFields):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = None


class StudyQuestionFields(RequestModel):
    explanation: Optional[str] = None
    difficulty_level: Optional[str] = None
    term: Optional[int] = None
    week: Optional[int] = None


class MultipleChoiceCreateRequest(StudyQuestionFields, CommonFields):
    question: str = Field(..., min_length=1)
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_answers: str = Field(..., min_length=1, max_length=20)
    is_multiple_correct: Optional[bool] = None


class MultipleChoiceUpdateRequest(StudyQuestionFields, UpdateCommonFields):
    question: Optional[str] = Field(None, min_length=1)
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_answers: Optional[str] = Field(None, min_length=1, max_length=20)
    is_multiple_correct: Optional[bool] = None


class FreeTextCreateRequest(StudyQuestionFields, CommonFields):
    question: str = Field(..., min_length=1)
    answer: Optional[str] = None
    description: Optional[str] = None


class FreeTextUpdateRequest(StudyQuestionFields, UpdateCommonFields):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = None
    description: Optional[str] = None


class TrueFalseCreateRequest(StudyQuestionFields, CommonFields):
    question: str = Field(..., min_length=1)
    answer: TrueFalseAnswer


class TrueFalseUpdateRequest(StudyQuestionFields, UpdateCommonFields):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[TrueFalseAnswer] = None


class FillBlankCreateRequest(StudyQuestionFields, CommonFields):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    grammar_chapter: Optional[str] = None
    science_chapter: Optional[str] = None


class FillBlankUpdateRequest(StudyQuestionFields, UpdateCommonFields):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    grammar_chapter: Optional[str] = None
    science_chapter: Optional[str] = None


# ========== 网站 / 配置 ==========

class WebsiteCreateRequest(CommonFields):
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=500)
    logo_url: Optional[str] = None
    description: Optional[str] = None


class WebsiteUpdateRequest(UpdateCommonFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, min_length=1, max_length=500)
    logo_url: Optional[str] = None
    description: Optional[str] = None


class BulkIdsRequest(RequestModel):
    ids: List[str] = Field(..., min_length=1)


class AppSettingCreateRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    value: Optional[str] = None
    lang: Optional[Language] = None
    is_system: Optional[bool] = None
    is_public: Optional[bool] = None


class AppSettingUpdateRequest(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    value: Optional[str] = None
    lang: Optional[Language] = None
    is_system: Optional[bool] = None
    is_public: Optional[bool] = None


class AppSettingValueRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    lang: Language = Language.EN
    value: str
