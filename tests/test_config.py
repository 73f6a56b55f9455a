import pytest

from ingestion.civic import CivicAdapter
from ingestion.congress import CongressAdapter
from ingestion.openstates import OpenStatesAdapter
from ingestion.source_factory import create_adapters_from_config, create_source_adapter
from services.config import SourceConfig, config_from_dict, load_config

RAW = {
    "LOG_LEVEL": "debug",
    "llm": {"model": "llama3.2:3b", "max_concurrency": 3},
    "feed": {
        "page_size": 15,
        "sources": [
            {"type": "civic", "cache_expiry_minutes": 60},
            {"type": "congress", "allow_demo_key": "true"},
            {"type": "openstates", "enabled": False},
        ],
    },
    "profile": {"location": "Austin, TX", "political_interests": ["tax_policy"]},
}


def test_config_from_dict_reads_keys_from_env():
    config = config_from_dict(RAW, env={"CONGRESS_API_KEY": "c-key", "GOOGLE_CIVIC_API_KEY": "g-key"})

    assert config.LOG_LEVEL == "DEBUG"
    assert config.llm.model == "llama3.2:3b"
    assert config.llm.timeout == 10.0
    assert config.feed.page_size == 15

    civic, congress, openstates = config.feed.sources
    assert civic.api_key == "g-key"
    assert civic.expiry_seconds == 3600
    assert congress.api_key == "c-key"
    assert congress.allow_demo_key is True
    assert congress.expiry_seconds == 30 * 60
    assert openstates.api_key is None
    assert not openstates.enabled

    assert config.feed.representatives.api_key == "g-key"
    assert config.feed.representatives.expiry_seconds == 24 * 3600


def test_env_log_level_wins():
    assert config_from_dict({}, env={"LOG_LEVEL": "warning"}).LOG_LEVEL == "WARNING"


def test_adapters_are_ordered_federal_state_local():
    config = config_from_dict(
        {"feed": {"sources": [{"type": "civic"}, {"type": "openstates"}, {"type": "congress"}]}},
        env={},
    )
    adapters = create_adapters_from_config(config.feed)
    assert [type(a) for a in adapters] == [CongressAdapter, OpenStatesAdapter, CivicAdapter]


def test_disabled_sources_are_skipped():
    config = config_from_dict(RAW, env={})
    assert [a.name for a in create_adapters_from_config(config.feed)] == ["congress", "civic"]


def test_unknown_source_type_raises():
    with pytest.raises(ValueError):
        create_source_adapter(SourceConfig(type="twitter"))


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yml"))


def test_load_config_from_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    path = tmp_path / "config.yml"
    path.write_text("LOG_LEVEL: ERROR\nfeed:\n  page_size: 5\n", encoding="utf-8")

    config = load_config(str(path))
    assert config.LOG_LEVEL == "ERROR"
    assert config.feed.page_size == 5
    assert config.feed.sources == []
