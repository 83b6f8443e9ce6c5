"""
config.py
---------

Runtime settings, read from the environment. Defaults are good enough
for local use; tests build a Settings directly.
"""

import os
from dataclasses import dataclass

DEFAULT_OWNER = "demo_user"


@dataclass(frozen=True)
class Settings:
    db_path: str = "tradelog.db"
    attachments_dir: str = "attachments"
    owner_id: str = DEFAULT_OWNER
    log_level: str = "INFO"
    secret_key: str = "dev-secret"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.getenv("TRADELOG_DB", cls.db_path),
            attachments_dir=os.getenv("TRADELOG_ATTACHMENTS", cls.attachments_dir),
            owner_id=os.getenv("TRADELOG_OWNER", cls.owner_id),
            log_level=os.getenv("TRADELOG_LOG_LEVEL", cls.log_level).upper(),
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
        )
