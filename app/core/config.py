from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Supabase Auth + Storage
    SUPABASE_URL: str
    SUPABASE_JWT_SECRET: str
    SUPABASE_SERVICE_KEY: Optional[str] = None
    STORAGE_BUCKET: str = "lease-documents"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Outbound email (Resend)
    RESEND_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "LINK Property <noreply@link-property.com>"
    APP_BASE_URL: str = "http://localhost:3000"

    # Rent scheduling
    PAYMENT_DUE_DAY: int = 1
    PAYMENT_HORIZON_MONTHS: int = 12
    APPROVAL_SCHEDULE_MONTHS: int = 1

    # Document types a tenant must upload when signing, e.g. ["id_front", "id_back"]
    REQUIRED_TENANT_DOCUMENT_TYPES: List[str] = []

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
