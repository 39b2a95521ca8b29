import pytest
from pydantic import ValidationError

from facetqa.browser.config import EngineConfig

YAML_CFG = {
    "target": {"url": "https://www.douglas.de/de", "max_concurrent_tests": 3},
    "browser_config": {"browser": "Firefox Headless"},
    "engine": {"retries": 5, "confirm_timeout": 30},
    "data_provider": "config/test_cases.csv",
    "selectors": {"facet_close_label": "CLOSE"},
}


class TestEngineConfig:
    def test_from_yaml_sections(self):
        config = EngineConfig.from_dict(YAML_CFG, environ={})

        assert config.url == "https://www.douglas.de/de"
        assert config.browser == "firefox headless"
        assert config.headless is True
        assert config.retries == 5
        assert config.confirm_timeout == 30
        assert config.max_concurrent_tests == 3
        assert config.selectors.facet_close_label == "CLOSE"

    def test_environment_beats_yaml(self):
        environ = {
            "FACETQA_URL": "https://www.douglas.at/de",
            "FACETQA_BROWSER": "edge",
            "FACETQA_RETRIES": "1",
            "FACETQA_TEST_RETRIES": "0",
            "FACETQA_DATA_PROVIDER": "cases.xlsx",
        }

        config = EngineConfig.from_dict(YAML_CFG, environ=environ)

        assert config.url == "https://www.douglas.at/de"
        assert config.browser == "edge"
        assert config.headless is False
        assert config.retries == 1
        assert config.test_retries == 0
        assert config.data_provider == "cases.xlsx"

    def test_missing_url_rejected(self):
        with pytest.raises(ValueError, match="Target URL not configured"):
            EngineConfig.from_dict({}, environ={})

    def test_unknown_browser_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(url="https://www.douglas.de/de", browser="safari")

    def test_browser_config_for_driver(self):
        config = EngineConfig(url="https://www.douglas.de/de", browser="firefox headless")

        browser_config = config.browser_config()

        assert browser_config["browser"] == "firefox"
        assert browser_config["headless"] is True
        assert browser_config["viewport"] == {"width": 1900, "height": 1200}
        assert browser_config["language"] == "de-DE"
