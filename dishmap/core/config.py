"""애플리케이션 전역 설정을 관리하는 모듈."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수 기반 설정 모델."""

    GOOGLE_API_KEY: str
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    UPLOAD_DIR: str = "uploads"
    METADATA_FILENAME: str = "metadata.json"
    UPLOADS_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 12 * 1024 * 1024
    REQUEST_TIMEOUT_SECONDS: int = 60
    EXTERNAL_API_TIMEOUT_SECONDS: int = 15
    GOOGLE_PLACES_TIMEOUT_SECONDS: int = 10
    GOOGLE_PLACES_LANGUAGE_CODE: str = "zh-TW"
    SEARCH_REGION_QUALIFIER: str = "restaurants in Hong Kong"
    SEARCH_MAX_RESULTS: int = 20
    APP_ENV: str = "development"
    DOCS_MODE: str = "public"
    EXPOSE_INTERNAL_ERRORS: bool = False
    CORS_ALLOW_ORIGINS: str = "*"
    CORS_ALLOW_METHODS: str = "GET,POST,OPTIONS"
    CORS_ALLOW_HEADERS: str = "Content-Type"
    CORS_ALLOW_CREDENTIALS: bool = False
    SECURITY_HEADERS_ENABLED: bool = True
    ENABLE_HSTS: bool = False
    HSTS_MAX_AGE_SECONDS: int = 31536000
    PROXY_HEADERS_ENABLED: bool = True
    PROXY_TRUSTED_HOSTS: str = "127.0.0.1"
    TRUSTED_HOSTS: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("GOOGLE_API_KEY")
    @classmethod
    def _require_google_api_key(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("GOOGLE_API_KEY must not be empty")
        return value.strip()

    @field_validator("SEARCH_MAX_RESULTS", mode="before")
    @classmethod
    def _clamp_search_max_results(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 20
        except (TypeError, ValueError):
            numeric = 20
        return min(20, max(1, numeric))

    @property
    def upload_path(self) -> Path:
        """업로드 파일이 저장되는 디렉터리 경로."""
        return Path(self.UPLOAD_DIR).resolve()

    @property
    def metadata_path(self) -> Path:
        """업로드 메타데이터 JSON 파일 경로."""
        return self.upload_path / self.METADATA_FILENAME


@lru_cache
def get_settings() -> Settings:
    """Settings 인스턴스를 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다."""
    return Settings()
