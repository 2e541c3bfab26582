import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./tenant_integrity.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
    ADMIN_URL = data.get("ADMIN_URL", "http://localhost:8000")

    IDENTITY_ADMIN_URL = data.get("IDENTITY_ADMIN_URL", "http://localhost:9999/auth/v1")
    IDENTITY_SERVICE_KEY = data.get("IDENTITY_SERVICE_KEY", "")
    IDENTITY_TIMEOUT_SECONDS = float(data.get("IDENTITY_TIMEOUT_SECONDS", 10))
    IDENTITY_PAGE_SIZE = int(data.get("IDENTITY_PAGE_SIZE", 1000))

    RETENTION_DAYS = int(data.get("RETENTION_DAYS", 30))
    RETENTION_SWEEP_ENABLED = bool(data.get("RETENTION_SWEEP_ENABLED", 1))
    RETENTION_SWEEP_INTERVAL_HOURS = float(data.get("RETENTION_SWEEP_INTERVAL_HOURS", 24))
    RETENTION_SWEEP_INITIAL_DELAY_SECONDS = float(data.get("RETENTION_SWEEP_INITIAL_DELAY_SECONDS", 60))

    WORKER_POOL_SIZE = int(data.get("WORKER_POOL_SIZE", 4))
    VALIDATION_SAMPLE_LIMIT = int(data.get("VALIDATION_SAMPLE_LIMIT", 5))
    NAME_BOILERPLATE_SUFFIXES = data.get("NAME_BOILERPLATE_SUFFIXES", ["pos"])
    NAME_BUSINESS_NOUNS = data.get("NAME_BUSINESS_NOUNS", ["company"])
