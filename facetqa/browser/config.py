import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from facetqa.browser.selectors import PageSelectors

DEFAULT_CONFIG = {
    "browser": "chrome headless",
    "headless": True,
    "viewport": {"width": 1800, "height": 1000},
    "language": "de-DE",
}

# Window sizes used for headless runs, per browser family.
HEADLESS_VIEWPORTS = {
    "chrome": {"width": 1800, "height": 1000},
    "firefox": {"width": 1900, "height": 1200},
    "edge": {"width": 1900, "height": 1200},
}

# Environment variables take priority over the YAML file.
ENV_OVERRIDES = {
    "FACETQA_URL": "url",
    "FACETQA_BROWSER": "browser",
    "FACETQA_TIMEOUT": "timeout",
    "FACETQA_CONFIRM_TIMEOUT": "confirm_timeout",
    "FACETQA_RETRIES": "retries",
    "FACETQA_TEST_RETRIES": "test_retries",
    "FACETQA_DATA_PROVIDER": "data_provider",
    "FACETQA_MAX_CONCURRENT_TESTS": "max_concurrent_tests",
}


class EngineConfig(BaseModel):
    """Opaque run settings consumed by the engine."""

    url: str
    browser: str = DEFAULT_CONFIG["browser"]
    language: str = DEFAULT_CONFIG["language"]
    timeout: float = Field(default=10, gt=0)
    confirm_timeout: float = Field(default=20, gt=0)
    retries: int = Field(default=3, ge=0)
    test_retries: int = Field(default=3, ge=0)
    fetch_timeout: float = Field(default=15, gt=0)
    fetch_retries: int = Field(default=2, ge=0)
    max_concurrent_tests: int = Field(default=2, ge=1)
    data_provider: Optional[str] = None
    report_dir: str = "./reports"
    selectors: PageSelectors = Field(default_factory=PageSelectors)

    @field_validator("browser")
    @classmethod
    def _check_browser(cls, value: str) -> str:
        value = value.strip().lower()
        if not any(name in value for name in HEADLESS_VIEWPORTS):
            raise ValueError(f"Unsupported browser '{value}', expected one of {sorted(HEADLESS_VIEWPORTS)}")
        return value

    @property
    def headless(self) -> bool:
        return "headless" in self.browser

    def browser_config(self) -> Dict[str, Any]:
        """Build the dict consumed by Driver.create_browser."""
        family = next(name for name in HEADLESS_VIEWPORTS if name in self.browser)
        return {
            **DEFAULT_CONFIG,
            "browser": family,
            "headless": self.headless,
            "viewport": dict(HEADLESS_VIEWPORTS[family]),
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> "EngineConfig":
        """Build settings from a parsed YAML document plus environment overrides.

        Args:
            cfg: Parsed YAML config with ``target``, ``browser_config``, ``engine``,
                ``report`` and ``selectors`` sections, all optional except ``target.url``.
            environ: Environment mapping, defaults to ``os.environ``.
        """
        environ = os.environ if environ is None else environ
        target = cfg.get("target", {}) or {}
        engine = cfg.get("engine", {}) or {}

        values: Dict[str, Any] = {
            "url": target.get("url", ""),
            "max_concurrent_tests": target.get("max_concurrent_tests", 2),
            "browser": (cfg.get("browser_config", {}) or {}).get("browser", DEFAULT_CONFIG["browser"]),
            "language": (cfg.get("browser_config", {}) or {}).get("language", DEFAULT_CONFIG["language"]),
            "data_provider": cfg.get("data_provider"),
            "report_dir": (cfg.get("report", {}) or {}).get("dir", "./reports"),
            "selectors": PageSelectors(**(cfg.get("selectors", {}) or {})),
        }
        values.update({k: v for k, v in engine.items() if k in cls.model_fields})

        for env_name, field_name in ENV_OVERRIDES.items():
            if environ.get(env_name):
                logging.debug(f"{field_name} overridden by environment variable {env_name}")
                values[field_name] = environ[env_name]

        if not values["url"]:
            raise ValueError(
                "Target URL not configured! Please set one of the following:\n"
                "   - Environment variable: FACETQA_URL\n"
                "   - Config file: target.url"
            )
        return cls(**values)
