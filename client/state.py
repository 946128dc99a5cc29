import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

THREAD_ID_KEY = "resumeBuilder_threadId"
RESUME_CONTENT_KEY = "resumeBuilder_resumeContent"


class ClientState:
    """Thread handle and latest resume draft, kept in a small JSON file"""

    def __init__(self, path: Path):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable client state at %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if k in (THREAD_ID_KEY, RESUME_CONTENT_KEY)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def _get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def _set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    @property
    def thread_id(self) -> Optional[str]:
        return self._get(THREAD_ID_KEY)

    @thread_id.setter
    def thread_id(self, value: str) -> None:
        self._set(THREAD_ID_KEY, value)

    @property
    def resume_content(self) -> Optional[str]:
        return self._get(RESUME_CONTENT_KEY)

    @resume_content.setter
    def resume_content(self, value: str) -> None:
        self._set(RESUME_CONTENT_KEY, value)

    def clear(self) -> None:
        self._save({})
