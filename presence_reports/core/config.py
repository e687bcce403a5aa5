# presence_reports/core/config.py
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configurações globais do serviço de relatórios.

    Compatível com as variáveis do .env do backend RTLS:
    - rtls_db_host, rtls_db_port, rtls_db_user, rtls_db_password, rtls_db_name
    - DATABASE_URL (opcional, tem prioridade)

    E os ajustes próprios dos relatórios:
    - REPORTS_TIMEZONE: fuso usado para buckets de calendário / hora / dia da semana
    - REPORTS_TOP_N, REPORTS_MAX_EVENTS, REPORTS_OCCUPANCY_BUCKET_MINUTES
    - janelas default (em horas) quando from_ts/to_ts não são enviados
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignora qualquer variável extra que não tenhamos declarado
    )

    APP_NAME: str = "SecurityVision Presence Reports"

    # ------------------------------------------------------------------
    # Banco RTLS (somente leitura para os relatórios)
    # ------------------------------------------------------------------
    rtls_db_host: str = "localhost"
    rtls_db_port: int = 5432
    rtls_db_user: str = "rtls"
    rtls_db_password: str = "rtls123"
    rtls_db_name: str = "rtls_db"

    DATABASE_URL: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
    )
    DATABASE_ECHO: bool = False

    # ------------------------------------------------------------------
    # Relatórios
    # ------------------------------------------------------------------
    REPORTS_TIMEZONE: str = "UTC"
    REPORTS_TOP_N: int = Field(default=10, ge=0)
    REPORTS_MAX_EVENTS: int = Field(default=1000, ge=1)
    REPORTS_TIMELINE_LIMIT: int = Field(default=500, ge=1)
    REPORTS_OCCUPANCY_BUCKET_MINUTES: int = Field(default=60, ge=1, le=24 * 60)

    # janelas default (horas) por família de relatório
    REPORTS_DEFAULT_SUMMARY_HOURS: int = 24 * 7
    REPORTS_DEFAULT_DISTRIBUTION_HOURS: int = 24 * 30
    REPORTS_DEFAULT_OCCUPANCY_HOURS: int = 24
    REPORTS_DEFAULT_ALERTS_HOURS: int = 24 * 30

    @field_validator("REPORTS_TIMEZONE")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    # ==================================================================
    # Propriedades derivadas
    # ==================================================================

    @property
    def database_url(self) -> str:
        """
        URL async do banco para o SQLAlchemy.

        Prioridade:
        1) se DATABASE_URL estiver setada no .env, usa ela
        2) senão, monta a partir de rtls_db_* e garante +asyncpg
        """
        url = self.DATABASE_URL
        if not url:
            url = (
                f"postgresql+asyncpg://"
                f"{self.rtls_db_user}:{self.rtls_db_password}"
                f"@{self.rtls_db_host}:{self.rtls_db_port}/{self.rtls_db_name}"
            )

        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        return url

    @property
    def reports_tz(self) -> ZoneInfo:
        return ZoneInfo(self.REPORTS_TIMEZONE)


settings = Settings()
