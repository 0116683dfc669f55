from typing import Optional

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Commercial Loan Application API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./loan_wizard.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Identity is resolved upstream; the proxy forwards the user id in this header.
    auth_user_header: str = "X-User-Id"

    object_storage_bucket_id: Optional[str] = None
    object_storage_root: str = "./object_storage"
    private_object_dir: Optional[str] = None
    max_upload_bytes: int = 10 * 1024 * 1024

    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: Optional[str] = None
    email_from: Optional[str] = None
    email_to: Optional[str] = None
    email_timeout_seconds: float = 10.0

    # Wizard client
    api_base_url: str = "http://127.0.0.1:3005"
    autosave_delay_seconds: float = 2.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def email_recipients(self) -> list[str]:
        if not self.email_to:
            return []
        return [addr.strip() for addr in self.email_to.split(",") if addr.strip()]


settings = Settings()
