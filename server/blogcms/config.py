"""
BlogCMS 配置管理模块

统一管理所有服务配置，支持环境变量
"""

from dataclasses import dataclass, field
from typing import Optional
import os
from functools import lru_cache


@dataclass
class ServerConfig:
    """服务器配置"""
    host: str = "0.0.0.0"
    http_port: int = 8080
    debug: bool = False


@dataclass
class DatabaseConfig:
    """数据库配置 (MySQL，可用 DATABASE_URL 覆盖)"""
    host: str = "localhost"
    port: int = 3306
    user: str = "blog"
    password: str = ""
    database: str = "blog"
    pool_size: int = 5
    pool_recycle: int = 3600
    override_url: Optional[str] = None

    @property
    def url(self) -> str:
        """SQLAlchemy 连接 URL"""
        if self.override_url:
            return self.override_url
        return f"mysql+aiomysql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass
class StorageConfig:
    """本地文件存储配置"""
    root: str = "uploads"

    # 各模块子目录 (相对 root)
    article_dir: str = "articles"
    article_image_dir: str = "article-images"
    audio_dir: str = "audios"
    video_dir: str = "videos"
    image_dir: str = "images"
    logo_dir: str = "logos"
    file_dir: str = "files"
    vocabulary_dir: str = "vocabularies"
    question_image_dir: str = "question-images"
    ru_prefix: str = "rubi"          # Ru 变体目录前缀: uploads/rubi/articles ...

    # 图片尺寸
    cover_image_max_size: int = 600
    image_max_size: int = 1920
    thumbnail_size: int = 200
    logo_target_size: int = 256
    logo_max_file_size: int = 5 * 1024 * 1024

    # URL 下载
    download_timeout: float = 30.0

    def module_dir(self, name: str, ru: bool = False) -> str:
        """模块存储目录绝对路径"""
        sub = getattr(self, f"{name}_dir")
        if ru:
            return os.path.abspath(os.path.join(self.root, self.ru_prefix, sub))
        return os.path.abspath(os.path.join(self.root, sub))


@dataclass
class LogConfig:
    """日志配置"""
    level: str = "INFO"
    structured: bool = False


@dataclass
class Settings:
    """全局配置"""
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量加载配置"""
        return cls(
            server=ServerConfig(
                host=os.getenv("SERVER_HOST", "0.0.0.0"),
                http_port=int(os.getenv("HTTP_PORT", "8080")),
                debug=os.getenv("DEBUG", "false").lower() == "true",
            ),
            database=DatabaseConfig(
                host=os.getenv("MYSQL_HOST", "localhost"),
                port=int(os.getenv("MYSQL_PORT", "3306")),
                user=os.getenv("MYSQL_USER", "blog"),
                password=os.getenv("MYSQL_PASSWORD", ""),
                database=os.getenv("MYSQL_DATABASE", "blog"),
                pool_size=int(os.getenv("MYSQL_POOL_SIZE", "5")),
                override_url=os.getenv("DATABASE_URL") or None,
            ),
            storage=StorageConfig(
                root=os.getenv("UPLOAD_ROOT", "uploads"),
                cover_image_max_size=int(os.getenv("COVER_IMAGE_MAX_SIZE", "600")),
                image_max_size=int(os.getenv("IMAGE_MAX_SIZE", "1920")),
                thumbnail_size=int(os.getenv("IMAGE_THUMBNAIL_SIZE", "200")),
                logo_target_size=int(os.getenv("LOGO_TARGET_SIZE", "256")),
                logo_max_file_size=int(os.getenv("LOGO_MAX_FILE_SIZE", str(5 * 1024 * 1024))),
                download_timeout=float(os.getenv("DOWNLOAD_TIMEOUT", "30")),
            ),
            log=LogConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                structured=os.getenv("LOG_STRUCTURED", "false").lower() == "true",
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """获取全局配置单例"""
    return Settings.from_env()
