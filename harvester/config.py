import os
from dataclasses import dataclass

from harvester.services.crawl.fetcher import DEFAULT_USER_AGENT

_ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


@dataclass
class Settings:
    user_agent: str
    concurrency: int
    catalog_url: str
    domain: str
    page_size: int
    start_page: int
    out_dir: str


def _load_env_from_file(env_path: str = None):
    """Load environment variables from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    """
    env_path = env_path or os.path.join(_ROOT_DIR, ".env")
    if not os.path.isfile(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            if "=" not in s:
                continue
            key, val = s.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")
            # Allow space around '=' like KEY = value
            if key and (key not in os.environ or not os.environ[key]):
                os.environ[key] = val


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env_path: str = None) -> Settings:
    """Read harvest settings from the environment, loading .env first.

    Raises a RuntimeError naming the variable when a numeric value is malformed.
    """
    _load_env_from_file(env_path)
    return Settings(
        user_agent=os.getenv("HARVEST_USER_AGENT") or DEFAULT_USER_AGENT,
        concurrency=_int_env("HARVEST_CONCURRENCY", 4),
        catalog_url=os.getenv("HARVEST_CATALOG_URL") or "https://scrapeme.live/shop/page/1/",
        domain=os.getenv("HARVEST_DOMAIN") or "https://fiu.campuslabs.com",
        page_size=_int_env("HARVEST_PAGE_SIZE", 1000),
        start_page=_int_env("HARVEST_START_PAGE", 0),
        out_dir=os.getenv("HARVEST_OUT_DIR") or os.path.join(_ROOT_DIR, "data", "harvested"),
    )
