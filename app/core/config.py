from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Settings
    APP_NAME: str = "Organogram Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database Settings
    DATABASE_URL: Optional[str] = None  # Overrides the MySQL URL below when set
    DB_NAME: str = "organo"
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_CHARSET: str = "utf8mb4"

    # Redis Settings
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DB: int = 0
    REDIS_COMMAND_TIMEOUT: float = 3.0
    REDIS_CONNECT_TIMEOUT: float = 10.0
    REDIS_MAX_RETRIES: int = 3
    REDIS_RECONNECT_INTERVAL: float = 5.0

    # Cache Settings
    CACHE_KEY_PREFIX: str = "app::"
    CACHE_TTL: int = 300
    EMPLOYEE_LIST_CACHE_TTL: int = 60
    SUBORDINATES_CACHE_TTL: int = 60
    HIERARCHY_SNAPSHOT_TTL: int = 60

    # Hierarchy Settings
    HIERARCHY_STRATEGY: Literal["auto", "recursive", "iterative"] = "auto"
    HIERARCHY_MAX_DEPTH: int = 10

    # CORS Settings
    CORS_ORIGINS: str = "https://localhost,http://localhost:3000"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string."""
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return [self.CORS_ORIGINS]

    @property
    def database_url(self) -> str:
        """Database URL, defaulting to MySQL built from the DB_* settings."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+mysqldb://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset={self.DB_CHARSET}"

    @property
    def database_url_without_db(self) -> str:
        """Generate MySQL URL without database name (for initial connection)."""
        return f"mysql+mysqldb://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}?charset={self.DB_CHARSET}"

    @property
    def uses_mysql(self) -> bool:
        return self.database_url.startswith("mysql")

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
