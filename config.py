"""
应用程序配置
"""
# 标准库导包
import os
from typing import List, Optional

# 第三方库导包
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用程序设置类"""

    # 应用基本信息
    APP_NAME: str = "STUDIO HUB"
    APP_VERSION: str = "1.0.0"
    POD_ENV: str = Field(default="test", env="POD_ENV")
    DEBUG: bool = Field(default_factory=lambda: Settings._get_debug())
    RELOAD: bool = False

    # 服务器配置
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8000, env="PORT")
    WORKERS: int = 1

    # 完整数据库URL，设置后优先于下面的分项配置（例如托管的 postgresql+asyncpg 地址）
    DATABASE_URL: Optional[str] = Field(default=None, env="DATABASE_URL")

    # 开发环境数据库配置
    DEV_DB_HOST: str = "localhost:3306"
    DEV_DB_USER: str = "root"
    DEV_DB_PASSWORD: str = "12345678"

    # 线上环境数据库配置
    ONLINE_DB_HOST: str = "localhost:3306"
    ONLINE_DB_USER: str = "root"
    ONLINE_DB_PASSWORD: str = "12345678"

    # 数据库名称
    DB_NAME: str = "studio_hub_db"

    # 数据库连接池配置
    DB_POOL_SIZE: int = Field(default=10, env="DB_POOL_SIZE")
    DB_MAX_CONNECTIONS: int = Field(default=20, env="DB_MAX_CONNECTIONS")
    DB_POOL_TIMEOUT: int = Field(default=30, env="DB_POOL_TIMEOUT")
    DB_POOL_RECYCLE: int = Field(default=3600, env="DB_POOL_RECYCLE")

    # CORS配置 - 允许所有跨域请求
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    # 日志配置
    LOG_LEVEL: str = Field(default="info", env="LOG_LEVEL")

    # 进程内缓存配置
    CACHE_DURATION_SECONDS: float = Field(default=300, env="CACHE_DURATION_SECONDS")  # 5分钟
    MOST_USED_LIMIT: int = 5

    # 标签/分类名称约束
    ITEM_NAME_MAX_LENGTH: int = 50

    # 分页配置
    COMMENTS_PAGE_SIZE: int = 10
    LIKED_USERS_LIMIT: int = 10

    # 可以审核工作室申请的用户ID
    STUDIO_ADMIN_USER_IDS: List[str] = []

    # 头像配置：文件名头像拼接到存储公开地址，未设置头像时使用 DiceBear 默认头像
    AVATAR_STORAGE_BASE_URL: Optional[str] = Field(default=None, env="AVATAR_STORAGE_BASE_URL")
    DEFAULT_AVATAR_URL: str = "https://api.dicebear.com/7.x/avataaars/svg"

    # 是否通过数据库存储过程原子更新帖子标签
    USE_ATOMIC_TAG_SYNC: bool = Field(default=False, env="USE_ATOMIC_TAG_SYNC")

    @staticmethod
    def _get_debug() -> bool:
        """获取DEBUG模式，基于POD_ENV环境变量"""
        return os.getenv("POD_ENV", "test").lower() != "online"

    # 根据环境变量设置当前数据库配置
    @property
    def DB_HOST(self) -> str:
        if self.POD_ENV == "online":
            return self.ONLINE_DB_HOST
        else:  # 默认使用开发环境
            return self.DEV_DB_HOST

    @property
    def DB_USER(self) -> str:
        if self.POD_ENV == "online":
            return self.ONLINE_DB_USER
        else:
            return self.DEV_DB_USER

    @property
    def DB_PASSWORD(self) -> str:
        if self.POD_ENV == "online":
            return self.ONLINE_DB_PASSWORD
        else:
            return self.DEV_DB_PASSWORD

    # API文档配置
    @property
    def DOCS_URL(self) -> Optional[str]:
        return "/docs" if self.DEBUG else None

    @property
    def REDOC_URL(self) -> Optional[str]:
        return "/redoc" if self.DEBUG else None

    @property
    def OPENAPI_URL(self) -> Optional[str]:
        return "/openapi.json" if self.DEBUG else None

    class Config:
        """Pydantic配置"""
        env_file = ".env"  # 支持从.env文件读取配置
        env_file_encoding = "utf-8"
        case_sensitive = True


# 创建设置实例
settings = Settings()
