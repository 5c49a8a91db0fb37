# madrasah_admin/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = 'HS256'

    # Trusted internal callers (scheduler, ops scripts) present this as a bearer token
    service_role_key: Optional[str] = None
    redis_url: Optional[str] = None

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']
    app_base_url: str = 'http://localhost:5173'

    # Backup / restore
    backup_retention_count: int = 30
    tenant_lock_timeout_seconds: int = 600
    tenant_lock_wait_seconds: float = 5.0
    function_rate_limit: int = 30

    # Scheduled backups
    celery_broker_url: str = 'redis://localhost:6379/1'
    celery_result_backend: str = 'redis://localhost:6379/2'
    auto_backup_hour: int = 2

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith('sqlite')

settings = Settings()
