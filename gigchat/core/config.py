from pathlib import Path

from pydantic_settings import BaseSettings

ROOT_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    app_name: str = "GigChat"
    debug: bool = False

    # Paths
    data_dir: Path = ROOT_DIR / "data"
    db_path: Path = ROOT_DIR / "gigchat.db"

    # Attachments
    storage_provider: str = "local"  # local
    public_base_url: str = "http://localhost:8000"
    media_prefix: str = "/media"
    max_attachment_bytes: int = 10 * 1024 * 1024

    # Messaging
    preview_length: int = 200

    # Identity
    login_url: str = "/login"

    # Server
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(ROOT_DIR / ".env"),
        "env_prefix": "GIGCHAT_",
    }

    @property
    def attachments_dir(self) -> Path:
        return self.data_dir / "attachments"


settings = Settings()
