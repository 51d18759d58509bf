"""
Environment configuration.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from clipdash.errors import ConfigurationError

load_dotenv()

PACKAGE_PATH = Path(__file__).parent

# ============ SHARE LIMITS ============
SHARE_TTL_SECONDS = 86400  # 24 hours
SHARE_TTL_LABEL = "24 heures"
MAX_TOTAL_SIZE = 4 * 1024 * 1024  # 4MB per share
MAX_FILE_SIZE = 2 * 1024 * 1024  # 2MB per file
KEY_PREFIX = "clipboard:"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() == "true"


@dataclass
class Settings:
    """Runtime settings, read once from the environment."""
    debug: bool = False
    production_domain: str = "localhost"
    store_backend: str = "upstash"
    upstash_url: Optional[str] = None
    upstash_token: Optional[str] = None
    sqlite_path: Path = PACKAGE_PATH / "data" / "clipboard.db"
    docs_path: Path = PACKAGE_PATH / "files"
    store_timeout: float = 10.0
    extra_hosts: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            debug=_env_bool("DEBUG"),
            production_domain=os.getenv("PRODUCTION_DOMAIN", "localhost"),
            store_backend=os.getenv("STORE_BACKEND", "upstash").strip().lower(),
            upstash_url=os.getenv("UPSTASH_REDIS_REST_URL") or None,
            upstash_token=os.getenv("UPSTASH_REDIS_REST_TOKEN") or None,
            sqlite_path=Path(os.getenv("SQLITE_PATH", str(PACKAGE_PATH / "data" / "clipboard.db"))),
            docs_path=Path(os.getenv("DOCS_PATH", str(PACKAGE_PATH / "files"))),
            store_timeout=float(os.getenv("STORE_TIMEOUT", "10")),
        )

    @property
    def allowed_origins(self) -> List[str]:
        origins = [
            f"https://{self.production_domain}",
            f"https://www.{self.production_domain}",
        ]
        if self.debug:
            origins += ["http://localhost:8000", "http://127.0.0.1:8000"]
        return origins

    @property
    def allowed_hosts(self) -> List[str]:
        hosts = [self.production_domain, f"*.{self.production_domain}"]
        if self.debug:
            hosts += ["localhost", "127.0.0.1"]
        return hosts + self.extra_hosts

    def require_store_credentials(self):
        """
        Fail fast when the Upstash backend has no credentials.

        Raises:
            ConfigurationError: If URL or token is missing
        """
        if self.store_backend != "upstash":
            return
        if not self.upstash_url or not self.upstash_token:
            raise ConfigurationError()
