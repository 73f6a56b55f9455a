"""
Loads and handles config from config.yml
API keys (CONGRESS_API_KEY, OPENSTATES_API_KEY, GOOGLE_CIVIC_API_KEY) are loaded from .env for security
"""
import logging
import os
from typing import List, Dict, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# source type -> env var holding its key
API_KEY_ENV = {
    "congress": "CONGRESS_API_KEY",
    "openstates": "OPENSTATES_API_KEY",
    "civic": "GOOGLE_CIVIC_API_KEY",
    "representatives": "GOOGLE_CIVIC_API_KEY",
}

# minutes
DEFAULT_CACHE_EXPIRY = {
    "congress": 30,
    "openstates": 30,
    "civic": 120,
    "city_feeds": 240,
    "representatives": 24 * 60,
}


class SourceConfig(BaseModel):
    """Configuration for a single ingestion source."""
    type: str  # congress, openstates, civic, city_feeds
    enabled: bool = True
    timeout: float = 8.0
    cache_expiry_minutes: Optional[float] = None
    max_cache_entries: Optional[int] = 100
    limit: int = 20
    base_url: Optional[str] = None
    allow_demo_key: bool = False  # congress only
    feeds: Optional[List[str]] = None  # city_feeds URL templates
    api_key: Optional[str] = None

    @property
    def expiry_seconds(self) -> float:
        minutes = self.cache_expiry_minutes
        if minutes is None:
            minutes = DEFAULT_CACHE_EXPIRY.get(self.type.lower(), 30)
        return minutes * 60


class LLMConfig(BaseModel):
    base_url: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    temperature: float = 0.1
    timeout: float = 10.0
    max_concurrency: int = 5
    enabled: bool = True


class RateLimitConfig(BaseModel):
    hourly_limit: int = 1000
    demo_hourly_limit: int = 30
    demo_daily_limit: int = 50


class ProfileConfig(BaseModel):
    """Default profile used by the CLI."""
    name: str = "resident"
    age: Optional[int] = None
    location: Optional[str] = None
    monthly_income: Optional[float] = None
    company: Optional[str] = None
    is_veteran: bool = False
    political_interests: List[str] = []
    goals: List[str] = []
    priority_categories: List[str] = []
    household_size: Optional[int] = None
    has_dependents: Optional[bool] = None
    uses_public_transit: Optional[bool] = None


class FeedConfig(BaseModel):
    page_size: int = 20
    load_more_step: int = 10
    sources: List[SourceConfig] = []
    representatives: SourceConfig = Field(
        default_factory=lambda: SourceConfig(type="representatives")
    )


class Config(BaseModel):
    LOG_LEVEL: str = "INFO"
    OUTPUT_DIR: str = "output"

    llm: LLMConfig = LLMConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    feed: FeedConfig = FeedConfig()
    profile: ProfileConfig = ProfileConfig()


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def _parse_source_config(data: Dict[str, Any], env: Dict[str, str]) -> SourceConfig:
    """Parse one source entry, filling its API key from the environment."""
    source_type = str(data.get("type", "")).lower()
    api_key = data.get("api_key") or env.get(API_KEY_ENV.get(source_type, "")) or None

    return SourceConfig(
        type=source_type,
        enabled=_bool(data.get("enabled", True)),
        timeout=float(data.get("timeout", 8.0)),
        cache_expiry_minutes=data.get("cache_expiry_minutes"),
        max_cache_entries=data.get("max_cache_entries", 100),
        limit=int(data.get("limit", 20)),
        base_url=data.get("base_url"),
        allow_demo_key=_bool(data.get("allow_demo_key", False)),
        feeds=data.get("feeds"),
        api_key=api_key,
    )


def config_from_dict(config: Dict[str, Any], env: Optional[Dict[str, str]] = None) -> Config:
    """
    Build a Config from already-parsed YAML data.
    env defaults to os.environ.
    """
    env = dict(os.environ) if env is None else env
    feed = config.get("feed", {}) or {}

    sources = [_parse_source_config(src, env) for src in feed.get("sources", [])]
    representatives = _parse_source_config(
        {"type": "representatives", **(feed.get("representatives") or {})}, env
    )

    return Config(
        LOG_LEVEL=str(env.get("LOG_LEVEL") or config.get("LOG_LEVEL", "INFO")).upper(),
        OUTPUT_DIR=config.get("OUTPUT_DIR", "output"),
        llm=LLMConfig(**(config.get("llm") or {})),
        rate_limit=RateLimitConfig(**(config.get("rate_limit") or {})),
        feed=FeedConfig(
            page_size=int(feed.get("page_size", 20)),
            load_more_step=int(feed.get("load_more_step", 10)),
            sources=sources,
            representatives=representatives,
        ),
        profile=ProfileConfig(**(config.get("profile") or {})),
    )


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and API keys from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = path or _get_config_path()
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Cannot find {config_path}")

    with open(config_path, 'r') as file:
        config = yaml.safe_load(file) or {}

    return config_from_dict(config)


def get_enabled_sources(feed_config: FeedConfig) -> List[SourceConfig]:
    """Get only enabled sources from a feed config."""
    return [src for src in feed_config.sources if src.enabled]
