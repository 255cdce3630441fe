from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    api_prefix: str = "/api"
    data_dir: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[3])
    teams_file: str = "team.json"
    static_dir: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[3] / "public")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    store_backend: Literal["file", "firebase"] = "file"
    firebase_url: Optional[str] = None
    firebase_collection: str = "teams"
    firebase_auth_token: Optional[str] = None
    firebase_timeout: int = 10

    formations: List[str] = Field(default_factory=lambda: ["4-4-2", "4-3-3", "3-5-2", "4-2-3-1"])
    # When set, an unrecognised formation is a defect instead of falling back to generic bounds
    strict_formation: bool = False

    class Config:
        env_prefix = "DREAMXI_"
        env_file = ".env"
        case_sensitive = False

    @property
    def teams_path(self) -> Path:
        return Path(self.data_dir) / self.teams_file


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
