from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    evolution_base_url: str = Field(
        default="http://localhost:8080",
        alias="EVOLUTION_BASE_URL",
    )
    evolution_instance: str = Field(
        default="",
        min_length=1,
        alias="EVOLUTION_INSTANCE",
    )
    evolution_api_key: str = Field(
        default="",
        min_length=1,
        alias="EVOLUTION_API_KEY",
    )
    webhook_host: str = Field(default="0.0.0.0", alias="WEBHOOK_HOST")
    webhook_port: int = Field(default=8000, alias="WEBHOOK_PORT")
    webhook_token: str = Field(
        default="",
        alias="WEBHOOK_TOKEN",
        description=(
            "Token opsional untuk webhook Evolution. Jika diisi, URL webhook "
            "harus memuat query ?token=<nilai>."
        ),
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def get_evolution_base_url(self) -> str:
        return self.evolution_base_url.rstrip("/")
