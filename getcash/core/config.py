import os

class Settings:
    PROJECT_NAME: str = "GetCash"
    DATABASE_URL: str = os.getenv("GETCASH_DATABASE_URL", "sqlite:///./getcash.db")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your_jwt_secret_key_change_this_in_prod")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Redis: per-user wallet locks
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    WALLET_LOCK_SECONDS: int = 5

    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Reserved admin account, seeded at startup
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "0776944")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "Book@123")
    ADMIN_PHONE: str = os.getenv("ADMIN_PHONE", "0776944322")

    # Withdrawals (UGX)
    MIN_WITHDRAWAL: int = int(os.getenv("MIN_WITHDRAWAL", "10000"))
    WITHDRAWAL_FEE_RATE: str = os.getenv("WITHDRAWAL_FEE_RATE", "0.02")

    CORS_ORIGINS: list = [o for o in os.getenv("CORS_ORIGINS", "*").split(",") if o]

settings = Settings()

# Starter tasks seeded into an empty task list (server and local store)
DEFAULT_TASKS = [
    {"title": "Watch YouTube Video", "price": 500, "category": "entertainment"},
    {"title": "Share on Social Media", "price": 1000, "category": "social"},
    {"title": "Complete Survey", "price": 750, "category": "survey"},
]
