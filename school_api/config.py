from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'School Management API'
    app_env: str = 'local'
    app_timezone: str = 'Asia/Kolkata'
    database_url: str = 'sqlite:///./school.db'
    db_slow_query_ms: int = 100
    metrics_slow_ms: int = 200
    cache_backend: str = 'memory'
    cache_redis_url: str | None = None
    default_cache_ttl: int = 60
    receipt_prefix: str = 'SCH'
    default_due_day: int = 10
    default_grace_period_days: int = 5
    default_passing_percentage: float = 33.0
    default_subject_max_marks: float = 100.0
    default_subject_passing_marks: float = 33.0
    enable_scheduler: bool = False
    overdue_check_time: str = '01:00'
    app_base_url: str = 'http://127.0.0.1:8000'


settings = Settings()
