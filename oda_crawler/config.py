from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Dict, Any
from pathlib import Path
from urllib.parse import urlparse
import os
import json

from dotenv import find_dotenv, load_dotenv

from .version import __version__, CONFIG_SCHEMA_VERSION

DEFAULT_BASE_URL = "https://oda.com"


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only so the engine, CLI and API share one shape.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    base_url: str = DEFAULT_BASE_URL
    start_path: str = "/no"
    max_depth: int = 2
    max_concurrency: int = 20
    request_timeout: float = 30.0
    user_agent: str = f"oda_crawler/{__version__}"
    follow_redirects: bool = True
    # Retry policy
    max_attempts: int = 5
    retry_base_delay: float = 1.0
    retry_factor: float = 2.0
    max_retry_time: float = 60.0
    retry_jitter: bool = False
    # Dotted paths for engine/exporter/adapter to allow runtime swapping without code changes.
    engine: str = "oda_crawler.engines.recursive_engine:RecursiveCrawlEngine"
    exporter: str = "oda_crawler.export.json_exporter:JSONExporter"
    adapter: str = "oda_crawler.adapters.oda:OdaProductAdapter"
    # Where to write results
    output_path: str = "output.json"
    broken_links_path: str = "brokenLinks.json"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def url_for(self, path: str) -> str:
        return self.base_url.rstrip("/") + path

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional). A .env file in
        the working directory is loaded first; real environment variables win.
        """
        load_dotenv(find_dotenv(usecwd=True))

        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _flag(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.strip().lower() in ("1", "true", "yes", "on")

        return cls(
            base_url=_get("BASE_URL", DEFAULT_BASE_URL),
            start_path=_get("ODA_CRAWLER_START_PATH", "/no"),
            max_depth=int(_get("ODA_CRAWLER_MAX_DEPTH", "2")),
            max_concurrency=int(_get("ODA_CRAWLER_MAX_CONCURRENCY", "20")),
            request_timeout=float(_get("ODA_CRAWLER_REQUEST_TIMEOUT", "30.0")),
            user_agent=_get("ODA_CRAWLER_USER_AGENT", f"oda_crawler/{__version__}"),
            follow_redirects=_flag("ODA_CRAWLER_FOLLOW_REDIRECTS", True),
            max_attempts=int(_get("ODA_CRAWLER_MAX_ATTEMPTS", "5")),
            retry_base_delay=float(_get("ODA_CRAWLER_RETRY_BASE_DELAY", "1.0")),
            retry_factor=float(_get("ODA_CRAWLER_RETRY_FACTOR", "2.0")),
            max_retry_time=float(_get("ODA_CRAWLER_MAX_RETRY_TIME", "60.0")),
            retry_jitter=_flag("ODA_CRAWLER_RETRY_JITTER", False),
            engine=_get("ODA_CRAWLER_ENGINE", "oda_crawler.engines.recursive_engine:RecursiveCrawlEngine"),
            exporter=_get("ODA_CRAWLER_EXPORTER", "oda_crawler.export.json_exporter:JSONExporter"),
            adapter=_get("ODA_CRAWLER_ADAPTER", "oda_crawler.adapters.oda:OdaProductAdapter"),
            output_path=_get("ODA_CRAWLER_OUTPUT_PATH", "output.json"),
            broken_links_path=_get("ODA_CRAWLER_BROKEN_LINKS_PATH", "brokenLinks.json"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Supports schema migration from v1 files.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        unknown = sorted(set(data) - {fld.name for fld in fields(cls)})
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL, got {self.base_url!r}")
        if not self.start_path.startswith("/"):
            raise ValueError("start_path must be a same-origin path beginning with '/'")
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if self.retry_base_delay < 0 or self.max_retry_time < 0:
            raise ValueError("retry delays must be >= 0")
        for out in (self.output_path, self.broken_links_path):
            Path(out).parent.mkdir(parents=True, exist_ok=True)


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    schema = raw.get("schema_version", 1)

    if schema < 2:
        # v1 crawled a list of absolute start URLs; keep the first one as origin + path.
        start_urls = raw.pop("start_urls", None) or []
        raw.pop("allowed_domains", None)
        raw.pop("extra_adapters", None)
        raw.pop("retries", None)
        # v1 plugin paths pointed at modules that no longer exist.
        raw.pop("engine", None)
        raw.pop("exporter", None)
        if start_urls:
            parsed = urlparse(start_urls[0])
            raw.setdefault("base_url", f"{parsed.scheme}://{parsed.netloc}")
            raw.setdefault("start_path", parsed.path or "/")
        raw["schema_version"] = 2

    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
