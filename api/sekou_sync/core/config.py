"""
Configuracion central del servicio de sincronizacion.
Gestiona variables de entorno (o .env) para la base de datos SQL Server,
las apps de kintone y la superficie de patch/recover.
"""
import re
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


# Identificador SQL Server: tabla, esquema.tabla o base.esquema.tabla
_SQL_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*){0,2}$")


def is_valid_sql_identifier(name: Optional[str]) -> bool:
    """Indica si `name` puede interpolarse como nombre de tabla en un MERGE."""
    return bool(name) and bool(_SQL_IDENTIFIER_RE.match(name))


class Settings(BaseSettings):
    """
    Clase de configuracion del servicio.
    Lee variables de entorno y proporciona valores por defecto.

    Base de datos:
    - DATABASE_URL se puede especificar completa o por componentes (DB_*)
    - INSTANCE_CONNECTION_NAME solo se registra; el tunel seguro es externo
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Sekou Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)

    # SQL Server - componentes separados
    DB_USER: str = Field(default="")
    DB_PASSWORD: str = Field(default="")
    DB_HOST: str = Field(default="localhost")
    DB_PORT: int = Field(default=1433)
    DB_NAME: str = Field(default="")
    DB_DRIVER: str = Field(default="ODBC Driver 18 for SQL Server")
    INSTANCE_CONNECTION_NAME: str = Field(default="")

    # SQL Server - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")

    # kintone
    KINTONE_DOMAIN: str = Field(default="")
    KINTONE_APP_ID: str = Field(default="")
    KINTONE_API_TOKEN: str = Field(default="")
    SYAIN_APP_ID: str = Field(default="39")
    SYAIN_API_TOKEN: str = Field(default="")
    # App de 業務日報 leida por el flujo inverso (vacio = app principal)
    REVERSE_APP_ID: str = Field(default="")
    REVERSE_API_TOKEN: str = Field(default="")
    KINTONE_TIMEOUT_S: int = Field(default=30)
    KINTONE_MAX_RETRIES: int = Field(default=3)

    # Superficie patch/recover
    APP_SECRET_PASS: str = Field(default="")

    # Tablas destino del flujo inverso (kintone -> SQL)
    SQL_TABLE_BASE: str = Field(default="")
    SQL_TABLE_DETAIL: str = Field(default="")

    # Reglas de la pasada
    REPLICA_WINDOW_MINUTES: int = Field(default=20)
    PROJECT_NO_SENTINEL: int = Field(default=900000000)
    SYNC_TIMEZONE: str = Field(default="Asia/Tokyo")
    SYNC_DEADLINE_SECONDS: int = Field(default=840)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/sync.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL mssql+pyodbc desde los componentes.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mssql+pyodbc://{quote_plus(self.DB_USER)}:{quote_plus(self.DB_PASSWORD)}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?driver={quote_plus(self.DB_DRIVER)}&TrustServerCertificate=yes"
        )

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def reverse_app_id(self) -> str:
        return self.REVERSE_APP_ID or self.KINTONE_APP_ID

    @property
    def reverse_api_token(self) -> str:
        return self.REVERSE_API_TOKEN or self.KINTONE_API_TOKEN

    def missing_settings(self) -> list[str]:
        """Lista las variables criticas vacias (se reportan como warning al arrancar)."""
        required = {
            "DB_NAME": self.DB_NAME or self.DATABASE_URL,
            "KINTONE_DOMAIN": self.KINTONE_DOMAIN,
            "KINTONE_APP_ID": self.KINTONE_APP_ID,
            "KINTONE_API_TOKEN": self.KINTONE_API_TOKEN,
            "SYAIN_API_TOKEN": self.SYAIN_API_TOKEN,
            "APP_SECRET_PASS": self.APP_SECRET_PASS,
            "SQL_TABLE_BASE": self.SQL_TABLE_BASE,
            "SQL_TABLE_DETAIL": self.SQL_TABLE_DETAIL,
        }
        return [name for name, value in required.items() if not value]

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Instancia global de configuracion
settings = Settings()
