from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "cleanshare"
    db_username: str = "cleanshare"
    db_password: str = "secret"

    files_root: str = "/app/files"
    scratch_root: str = ""
    download_url_prefix: str = "/api/files/download"

    allowed_mime_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/png",
            "application/pdf",
            "text/plain",
        ]
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    scrub_strategies: list[str] = Field(
        default_factory=lambda: ["mat2", "exiftool", "pymupdf"]
    )
    scrub_mat2_enabled: bool = True
    scrub_exiftool_enabled: bool = True
    scrub_pymupdf_enabled: bool = True
    scrub_backend: str = "local"
    scrub_remote_shell_prefix: list[str] = Field(default_factory=list)
    scrub_timeout_seconds: int = Field(default=60, gt=0)
    probe_timeout_seconds: int = Field(default=5, gt=0)

    content_store_url: str = ""
    content_store_project_id: str = ""
    content_store_project_secret: str = ""
    content_store_timeout_seconds: int = Field(default=30, gt=0)

    ledger_mode: str = "simulated"
    ledger_rpc_url: str = ""
    ledger_account: str = ""
    ledger_private_key: str = ""
    ledger_contract_address: str = "0x0000000000000000000000000000000000000000"
    ledger_timeout_seconds: int = Field(default=30, gt=0)
    ledger_receipt_timeout_seconds: int = Field(default=120, gt=0)
