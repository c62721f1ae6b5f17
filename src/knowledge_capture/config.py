"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from knowledge_capture import prompts
from knowledge_capture.core.cost import PriceTable
from knowledge_capture.core.domains import DEFAULT_DOMAINS, DomainVocabulary


@dataclass
class ClaudeConfig:
    """Claude API settings (classification, filing and resolution)."""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 500
    temperature: float = 0.2
    max_retries: int = 5
    initial_retry_delay: float = 2.0
    request_delay: float = 0.5
    timeout: float = 60.0


@dataclass
class OpenAIConfig:
    """OpenAI settings (embeddings and audio transcription)."""
    embedding_model: str = "text-embedding-3-small"
    transcription_model: str = "gpt-4o-mini-transcribe"
    timeout: float = 120.0


@dataclass
class GrokConfig:
    """xAI settings for the rich social-content provider."""
    model: str = "grok-4-1-fast"
    timeout: float = 90.0


@dataclass
class GitHubConfig:
    """Code-host settings."""
    api_base: str = "https://api.github.com"
    search_per_page: int = 10
    timeout: float = 30.0


@dataclass
class PipelineConfig:
    """Bounds for one workflow instance."""
    max_attempts: int = 3
    retry_delay: float = 2.0
    max_candidates: int = 5
    max_pool_per_name: int = 5
    max_repos_per_item: int = 3


@dataclass
class StorageConfig:
    """Path settings."""
    database_path: Path = Path("knowledge_capture.db")


@dataclass
class PricingConfig:
    """Price tables, USD per million tokens."""
    classification: PriceTable = field(default_factory=lambda: PriceTable(3.00, 15.00))
    social: PriceTable = field(default_factory=lambda: PriceTable(0.20, 0.50))
    embedding: PriceTable = field(default_factory=lambda: PriceTable(0.02))


@dataclass
class DomainsConfig:
    """Topic domains offered to the classifier."""
    domains: dict = field(default_factory=lambda: dict(DEFAULT_DOMAINS))
    default: str = "other"

    def vocabulary(self) -> DomainVocabulary:
        return DomainVocabulary(domains=dict(self.domains), default=self.default)


@dataclass
class PromptsConfig:
    """Prompts for LLM calls."""
    classification: dict = field(default_factory=lambda: dict(prompts.CLASSIFICATION))
    candidate_extraction: dict = field(default_factory=lambda: dict(prompts.CANDIDATE_EXTRACTION))
    repo_arbiter: dict = field(default_factory=lambda: dict(prompts.REPO_ARBITER))
    repo_validation: dict = field(default_factory=lambda: dict(prompts.REPO_VALIDATION))
    container_assignment: dict = field(default_factory=lambda: dict(prompts.CONTAINER_ASSIGNMENT))
    interests: dict = field(default_factory=lambda: dict(prompts.INTERESTS))
    social_post: dict = field(default_factory=lambda: dict(prompts.SOCIAL_POST))


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    xai_api_key: Optional[str] = None
    github_token: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    youtube_innertube_key: str = ""

    # Config sections
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    grok: GrokConfig = field(default_factory=GrokConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    domains: DomainsConfig = field(default_factory=DomainsConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def database_path(self) -> Path:
        return self.storage.database_path

    @property
    def max_attempts(self) -> int:
        return self.pipeline.max_attempts


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _price_table(value: dict) -> PriceTable:
    return PriceTable(
        input_per_million=float(value.get("input_per_million", 0.0)),
        output_per_million=float(value.get("output_per_million", 0.0)),
    )


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    # Load YAML config
    config = load_config(config_path)

    # Build settings with API keys from environment
    settings = Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        xai_api_key=os.getenv("XAI_API_KEY"),
        github_token=os.getenv("GITHUB_TOKEN"),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN"),
        youtube_innertube_key=os.getenv("YOUTUBE_INNERTUBE_KEY", ""),
    )

    # Apply YAML config
    for section in ("claude", "openai", "grok", "github", "pipeline"):
        for key, value in (config.get(section) or {}).items():
            setattr(getattr(settings, section), key, value)

    if "storage" in config:
        for key, value in config["storage"].items():
            setattr(settings.storage, key, Path(value))

    if "pricing" in config:
        for key, value in config["pricing"].items():
            setattr(settings.pricing, key, _price_table(value))

    if "domains" in config:
        settings.domains = DomainsConfig(**config["domains"])

    if "prompts" in config:
        settings.prompts = PromptsConfig(**config["prompts"])

    return settings
