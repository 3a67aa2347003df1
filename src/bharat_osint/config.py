from dataclasses import dataclass
from typing import Optional


@dataclass
class OsintConfig:
    """
    Configuration for the bharat-osint console. This should be passed around explicitly.
    """
    # Provider (Gemini generateContent REST endpoint)
    model_name: str = "gemini-3-flash-preview"
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    api_key: Optional[str] = None
    api_key_env: str = "API_KEY"  # consulted when api_key is unset
    temperature: float = 0.4

    # Timeouts in seconds
    api_timeout: float = 30.0

    # Session collaborators
    recent_store_path: Optional[str] = "~/.bharat_osint/recent.json"
    max_recent_searches: int = 5
    activity_log_size: int = 10

    # Presentation
    items_per_page: int = 5
    export_dir: str = "exports"

    def as_dict(self):
        return self.__dict__
