import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


class Settings(BaseModel):
    output_dir: Path = Field(default=Path("output"), alias="SCOUT_OUTPUT_DIR")
    save_artifacts: bool = Field(default=False, alias="SCOUT_SAVE_ARTIFACTS")
    headless: bool = Field(default=True, alias="SCOUT_HEADLESS")
    nav_timeout_ms: int = Field(default=30000, ge=1000, alias="SCOUT_NAV_TIMEOUT_MS")
    settle_ms: int = Field(default=2000, ge=0, alias="SCOUT_SETTLE_MS")
    retries: int = Field(default=1, ge=0, le=5, alias="SCOUT_RETRIES")
    concurrency: int = Field(default=4, ge=1, le=16, alias="SCOUT_CONCURRENCY")
    log_level: str = Field(default="INFO", alias="SCOUT_LOG_LEVEL")
    env: str = Field(default="local", alias="APP_ENV")


ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


def _describe(error) -> str:
    name = str(error["loc"][0]) if error["loc"] else "?"
    return f"{name}={error.get('input')!r} ({error['msg']})"


@lru_cache()
def get_settings() -> Settings:
    """
    Settings from the process environment. A `.env` beside the project root
    fills in anything unset; real environment variables win.
    """
    load_dotenv(ENV_FILE if ENV_FILE.exists() else None)
    try:
        return Settings(**os.environ)
    except ValidationError as exc:
        details = "; ".join(_describe(e) for e in exc.errors())
        raise RuntimeError(f"Invalid environment variables: {details}") from exc
