from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str

    # Glitch (substrate) node websocket, e.g. ws://127.0.0.1:9944
    WS_NODE: str
    ETH_NODE: AnyHttpUrl

    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    RPC_TIMEOUT_SECONDS: float = 30
    DB_CONNECT_RETRIES: int = 5

    CORS_ORIGINS: list[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
