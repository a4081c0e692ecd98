import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "epubshelf"
DEFAULT_BUCKET = "books"
DEFAULT_TIMEOUT = 20.0
DEFAULT_LOG_LEVEL = "INFO"

DB_NAME = "epubshelf.db"
BLOB_DIR_NAME = "books"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip()


def log_level_name() -> str:
    return (_env("EPUBSHELF_LOG_LEVEL", DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()


@dataclass(frozen=True)
class ShelfConfig:
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    backend_url: Optional[str] = None
    api_key: Optional[str] = None
    bucket: str = DEFAULT_BUCKET
    request_timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def db_path(self) -> Path:
        return self.data_dir / DB_NAME

    @property
    def blob_dir(self) -> Path:
        return self.data_dir / BLOB_DIR_NAME

    @property
    def has_backend(self) -> bool:
        return bool(self.backend_url and self.api_key)

    def ensure_dirs(self):
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.blob_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> "ShelfConfig":
        data_dir = _env("EPUBSHELF_DATA_DIR")
        timeout = _env("EPUBSHELF_REQUEST_TIMEOUT")
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
            backend_url=(_env("EPUBSHELF_BACKEND_URL") or "").rstrip("/") or None,
            api_key=_env("EPUBSHELF_API_KEY"),
            bucket=_env("EPUBSHELF_BUCKET", DEFAULT_BUCKET),
            request_timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
            log_level=log_level_name(),
        )
