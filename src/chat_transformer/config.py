"""Configuration loading and management."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

# Topic keywords matched against conversation titles
DEFAULT_TOPIC_KEYWORDS: list[str] = [
    "python", "javascript", "go", "golang", "react", "node", "api",
    "database", "sql", "web", "frontend", "backend", "code", "programming",
    "debug", "error", "function", "class", "algorithm", "data", "structure",
]

# Worker count for the conversion pool; work is allocation-bound, not CPU-bound
DEFAULT_WORKERS = 25

DEFAULT_PROGRESS_EVERY = 100


@dataclass
class PipelineConfig:
    workers: int = DEFAULT_WORKERS
    progress_every: int = DEFAULT_PROGRESS_EVERY


@dataclass
class TopicsConfig:
    keywords: list[str] = field(default_factory=lambda: list(DEFAULT_TOPIC_KEYWORDS))


@dataclass
class TypesenseConfig:
    enabled: bool = False
    host: str = "localhost"
    port: int = 8108
    protocol: str = "http"
    api_key: str = "dev-api-key"


@dataclass
class Config:
    input_path: Path = field(default_factory=lambda: Path("raw"))
    output_path: Path = field(default_factory=lambda: Path("expanded"))
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    topics: TopicsConfig = field(default_factory=TopicsConfig)
    typesense: TypesenseConfig = field(default_factory=TypesenseConfig)
    log_level: str = "INFO"


def expand_env_var(value: str) -> str:
    """Expand environment variables in string (e.g. ${VAR})."""
    if value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        return os.environ.get(env_var, value)
    return value


def expand_path(path_str: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config in standard locations
        search_paths = [
            Path.cwd() / "config.yaml",
            Path.home() / ".config" / "chat-transformer" / "config.yaml",
            Path("/etc/chat-transformer/config.yaml"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = path
                break

    if config_path is None or not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    pipeline_data = data.get("pipeline") or {}
    pipeline = PipelineConfig(
        workers=max(1, int(pipeline_data.get("workers", DEFAULT_WORKERS))),
        progress_every=int(pipeline_data.get("progress_every", DEFAULT_PROGRESS_EVERY)),
    )

    topics_data = data.get("topics") or {}
    keywords = topics_data.get("keywords")
    topics = TopicsConfig(
        keywords=[str(k).lower() for k in keywords] if keywords else list(DEFAULT_TOPIC_KEYWORDS),
    )

    ts_data = data.get("typesense") or {}
    typesense = TypesenseConfig(
        enabled=bool(ts_data.get("enabled", False)),
        host=ts_data.get("host", "localhost"),
        port=ts_data.get("port", 8108),
        protocol=ts_data.get("protocol", "http"),
        api_key=expand_env_var(ts_data.get("api_key", "dev-api-key")),
    )

    return Config(
        input_path=expand_path(data.get("input_path", "raw")),
        output_path=expand_path(data.get("output_path", "expanded")),
        pipeline=pipeline,
        topics=topics,
        typesense=typesense,
        log_level=str(data.get("log_level", "INFO")).upper(),
    )
