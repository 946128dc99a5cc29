import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

WORK_EXPERIENCE = "work-experience"
JOB_DESCRIPTION = "job-description"
FILE_TYPES = (WORK_EXPERIENCE, JOB_DESCRIPTION)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from the environment"""
    openai_api_key: Optional[str] = None
    assistant_id: Optional[str] = None
    model: str = "gpt-4o"
    vector_store_name: str = "resume-rooster-vector-store"
    frontend_url: str = "http://localhost:3000"
    log_level: str = "INFO"
    server_url: str = "http://localhost:8000"
    state_path: Path = Path.home() / ".resume-rooster" / "state.json"
    max_files: Dict[str, int] = field(default_factory=lambda: {
        WORK_EXPERIENCE: 10,
        JOB_DESCRIPTION: 1,
    })

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    load_dotenv()

    state_path = os.getenv("RESUME_ROOSTER_STATE")
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        assistant_id=os.getenv("OPENAI_ASSISTANT_ID") or None,
        model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        vector_store_name=os.getenv("VECTOR_STORE_NAME", "resume-rooster-vector-store"),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        server_url=os.getenv("RESUME_ROOSTER_URL", "http://localhost:8000"),
        state_path=Path(state_path).expanduser() if state_path else Settings.state_path,
    )
