import os

class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URL = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    LOG_LEVEL = os.getenv("LOG_LEVEL")
    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "storefront-sync")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

    # ERPNext source
    ERPNEXT_URL = os.getenv("ERPNEXT_URL", "")
    ERPNEXT_API_KEY = os.getenv("ERPNEXT_API_KEY", "")
    ERPNEXT_API_SECRET = os.getenv("ERPNEXT_API_SECRET", "")
    ERPNEXT_TIMEOUT = float(os.getenv("ERPNEXT_TIMEOUT", 30))

    # Sync
    SYNC_API_KEY = os.getenv("SYNC_API_KEY")
    SYNC_BATCH_SIZE = int(os.getenv("SYNC_BATCH_SIZE", 50))
    SYNC_PAGE_SIZE = int(os.getenv("SYNC_PAGE_SIZE", 100))
    SYNC_PRICE_BATCH_SIZE = int(os.getenv("SYNC_PRICE_BATCH_SIZE", 50))
    SYNC_LOCK_TTL_SECONDS = int(os.getenv("SYNC_LOCK_TTL_SECONDS", 900))
    SYNC_SCHEDULE_CRON_MINUTE = os.getenv("SYNC_SCHEDULE_CRON_MINUTE", "*/30")
    SYNC_RUN_LIMIT = os.getenv("SYNC_RUN_LIMIT", "10 per hour")

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    RATELIMIT_ENABLED = False
    SYNC_API_KEY = "test-sync-key"
    ERPNEXT_URL = "http://erpnext.test"
    ERPNEXT_API_KEY = "test-api-key"
    ERPNEXT_API_SECRET = "test-api-secret"

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        for name in (
            "SECRET_KEY",
            "DATABASE_URL",
            "ERPNEXT_URL",
            "ERPNEXT_API_KEY",
            "ERPNEXT_API_SECRET",
            "SYNC_API_KEY",
        ):
            if not os.getenv(name):
                missing.append(name)
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
