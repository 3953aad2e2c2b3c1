"""
Baseline Analytics Configuration
Supports AWS Parameter Store for production secrets
"""
import os

import boto3


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from AWS Parameter Store or environment"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    if os.environ.get("USE_PARAMETER_STORE"):
        try:
            ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "us-west-2"))
            path = os.environ.get("PARAMETER_STORE_PATH", "/baseline/prod/")
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
            return response["Parameter"]["Value"]
        except Exception as e:
            print(f"Warning: Could not load {name} from Parameter Store: {e}")

    return default


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///baseline.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Fix Render's postgres:// URL
    if SQLALCHEMY_DATABASE_URI.startswith("postgres://"):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace("postgres://", "postgresql://", 1)

    # Session cookie
    SESSION_SECRET = os.environ.get("SESSION_SECRET", "")
    SESSION_MAX_AGE = 60 * 60 * 24
    SESSION_COOKIE_SECURE = False

    # PIN logins
    ADMIN_PIN_CHASE = os.environ.get("ADMIN_PIN_CHASE", "")
    ADMIN_PIN_SHELDON = os.environ.get("ADMIN_PIN_SHELDON", "")
    DECK_PIN = os.environ.get("DECK_PIN", "")

    # Object storage (S3 or any S3-compatible endpoint)
    AWS_REGION = os.environ.get("AWS_REGION", "us-west-2")
    S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL", "")
    PITCH_DECK_BUCKET = os.environ.get("PITCH_DECK_BUCKET", "pitch-deck-files")
    STORAGE_PUBLIC_URL = os.environ.get("STORAGE_PUBLIC_URL", "")

    # Uploads
    MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB
    MAX_SLIDE_BYTES = 10 * 1024 * 1024  # 10MB per slide
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES + 1024 * 1024
    SLIDE_RENDER_SCALE = float(os.environ.get("SLIDE_RENDER_SCALE", "2.0"))

    # Rate Limiting
    RATELIMIT_STORAGE_URL = os.environ.get("RATELIMIT_STORAGE_URL", os.environ.get("REDIS_URL", "memory://"))
    LOGIN_RATE_LIMIT = 5
    LOGIN_RATE_WINDOW = 15 * 60

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)
    SESSION_SECRET = get_parameter("session-secret", Config.SESSION_SECRET)
    ADMIN_PIN_CHASE = get_parameter("admin-pin-chase", Config.ADMIN_PIN_CHASE)
    ADMIN_PIN_SHELDON = get_parameter("admin-pin-sheldon", Config.ADMIN_PIN_SHELDON)
    DECK_PIN = get_parameter("deck-pin", Config.DECK_PIN)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SESSION_SECRET = "test-session-secret"
    ADMIN_PIN_CHASE = "1111"
    ADMIN_PIN_SHELDON = "2222"
    DECK_PIN = "3333"
    RATELIMIT_STORAGE_URL = "memory://"
    LOGIN_RATE_LIMIT = 50
    STORAGE_PUBLIC_URL = "https://storage.test/public"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}

