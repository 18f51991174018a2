"""
Configuration management for the meeting intelligence pipeline.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Sub-configs are rebuilt in Settings.model_post_init, so each reads .env itself
SUB_CONFIG_SETTINGS = SettingsConfigDict(
    env_prefix="",
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


def _parse_flag(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "y")
    return bool(v)


class OpenAIConfig(BaseSettings):
    """OpenAI chat completion configuration."""

    api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    temperature: float = Field(default=0.7, alias="OPENAI_TEMPERATURE")
    max_tokens: int = Field(default=3000, alias="OPENAI_MAX_TOKENS")
    critique_temperature: float = Field(default=0.5, alias="OPENAI_CRITIQUE_TEMPERATURE")

    # Second editorial pass over the draft
    self_critique: bool = Field(default=True, alias="SELF_CRITIQUE")
    tools_enabled: bool = Field(default=True, alias="OPENAI_TOOLS_ENABLED")

    # Overall deadline for the whole tool-calling conversation
    generation_deadline_seconds: float = Field(
        default=300.0, alias="OPENAI_GENERATION_DEADLINE_SECONDS"
    )

    @field_validator("self_critique", "tools_enabled", mode="before")
    @classmethod
    def parse_flags(cls, v):
        return _parse_flag(v)

    model_config = SUB_CONFIG_SETTINGS


class SearchConfig(BaseSettings):
    """Serper web search configuration."""

    api_key: Optional[str] = Field(default=None, alias="SERPER_API_KEY")
    api_base: str = Field(default="https://google.serper.dev", alias="SERPER_API_BASE")
    cache_ttl_seconds: float = Field(default=900.0, alias="SEARCH_CACHE_TTL_SECONDS")
    max_results: int = Field(default=10, alias="SEARCH_MAX_RESULTS")

    model_config = SUB_CONFIG_SETTINGS


class HubSpotConfig(BaseSettings):
    """HubSpot CRM configuration."""

    token: Optional[str] = Field(default=None, alias="HUBSPOT_TOKEN")
    api_base: str = Field(default="https://api.hubapi.com", alias="HUBSPOT_API_BASE")
    contact_properties: List[str] = Field(
        default_factory=lambda: [
            "email",
            "firstname",
            "lastname",
            "jobtitle",
            "company",
            "lifecyclestage",
            "linkedin_url",
            "hs_object_id",
        ],
        alias="HUBSPOT_CONTACT_PROPERTIES",
    )
    search_limit: int = Field(default=10, alias="HUBSPOT_SEARCH_LIMIT")

    @field_validator("contact_properties", mode="before")
    @classmethod
    def parse_properties(cls, v):
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v or []

    model_config = SUB_CONFIG_SETTINGS


class PeopleDataLabsConfig(BaseSettings):
    """People Data Labs enrichment configuration."""

    api_key: Optional[str] = Field(default=None, alias="PEOPLEDATALABS_API_KEY")
    api_base: str = Field(
        default="https://api.peopledatalabs.com/v5", alias="PEOPLEDATALABS_API_BASE"
    )
    max_requests_per_minute: int = Field(default=100, alias="PEOPLEDATALABS_MAX_REQUESTS_PER_MINUTE")
    enrichment_fields: List[str] = Field(
        default_factory=lambda: [
            "emails",
            "profiles",
            "job_history",
            "education",
            "skills",
            "interests",
        ],
        alias="PEOPLEDATALABS_ENRICHMENT_FIELDS",
    )

    @field_validator("enrichment_fields", mode="before")
    @classmethod
    def parse_fields(cls, v):
        if isinstance(v, str):
            return [f.strip() for f in v.split(",") if f.strip()]
        return v or []

    model_config = SUB_CONFIG_SETTINGS


class ResearchConfig(BaseSettings):
    """Research fan-out configuration."""

    max_concurrent_attendees: int = Field(default=4, alias="RESEARCH_MAX_CONCURRENT_ATTENDEES")

    # Result ceilings per query
    linkedin_search_limit: int = Field(default=5, alias="RESEARCH_LINKEDIN_SEARCH_LIMIT")
    background_results: int = Field(default=3, alias="RESEARCH_BACKGROUND_RESULTS")
    overview_results: int = Field(default=5, alias="RESEARCH_OVERVIEW_RESULTS")
    news_results: int = Field(default=5, alias="RESEARCH_NEWS_RESULTS")
    financial_results: int = Field(default=3, alias="RESEARCH_FINANCIAL_RESULTS")
    digital_results: int = Field(default=4, alias="RESEARCH_DIGITAL_RESULTS")
    competitive_results: int = Field(default=8, alias="RESEARCH_COMPETITIVE_RESULTS")

    # Scraping
    scrape_linkedin: bool = Field(default=True, alias="RESEARCH_SCRAPE_LINKEDIN")
    max_scrape_length: int = Field(default=5000, alias="RESEARCH_MAX_SCRAPE_LENGTH")
    scrape_timeout: float = Field(default=15.0, alias="RESEARCH_SCRAPE_TIMEOUT")

    # Matching / generation policy
    fuzzy_prefix_length: int = Field(default=4, alias="CRM_FUZZY_PREFIX_LENGTH")
    max_tool_rounds: int = Field(default=1, alias="OPENAI_MAX_TOOL_ROUNDS")

    @field_validator("scrape_linkedin", mode="before")
    @classmethod
    def parse_scrape_linkedin(cls, v):
        return _parse_flag(v)

    model_config = SUB_CONFIG_SETTINGS


class RetryConfig(BaseSettings):
    """Retry policy shared by every external call site."""

    max_attempts: int = Field(default=3, alias="RETRY_MAX_ATTEMPTS")
    base_delay_seconds: float = Field(default=1.0, alias="RETRY_BASE_DELAY_SECONDS")
    max_delay_seconds: float = Field(default=5.0, alias="RETRY_MAX_DELAY_SECONDS")

    model_config = SUB_CONFIG_SETTINGS


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="production", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Component configurations
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    hubspot: HubSpotConfig = Field(default_factory=HubSpotConfig)
    peopledatalabs: PeopleDataLabsConfig = Field(default_factory=PeopleDataLabsConfig)
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    # Per-request HTTP timeout for provider calls
    request_timeout: float = Field(default=30.0, alias="REQUEST_TIMEOUT")

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        return _parse_flag(v)

    def model_post_init(self, __context) -> None:
        # Initialize sub-configurations
        self.openai = OpenAIConfig()
        self.search = SearchConfig()
        self.hubspot = HubSpotConfig()
        self.peopledatalabs = PeopleDataLabsConfig()
        self.research = ResearchConfig()
        self.retry = RetryConfig()

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def validate_required_settings(config: Optional[Settings] = None) -> List[str]:
    """
    Validate that the settings needed for report generation are present.

    Only the LLM key is mandatory; every research provider is optional and
    degrades to "Unknown" data when absent.

    Returns:
        List of missing required settings
    """
    missing = []
    try:
        config = config or get_settings()
        if not config.openai.api_key:
            missing.append("OPENAI_API_KEY")
    except Exception as e:
        missing.append(f"Configuration error: {e}")

    return missing


def provider_status(config: Optional[Settings] = None) -> Dict[str, str]:
    """Report which optional research providers are configured."""
    config = config or get_settings()
    return {
        "openai": "configured" if config.openai.api_key else "missing",
        "serper_search": "configured" if config.search.api_key else "unavailable",
        "hubspot_crm": "configured" if config.hubspot.token else "unavailable",
        "peopledatalabs": "configured" if config.peopledatalabs.api_key else "unavailable",
    }


def print_configuration_summary():
    """Print a summary of the current configuration for debugging."""
    try:
        config = get_settings()
        status = provider_status(config)
        print("=== Meeting Intelligence Configuration ===")
        print(f"Environment: {config.environment}")
        print(f"Debug Mode: {config.debug}")
        print(f"Request Timeout: {config.request_timeout}s")
        print()
        print(f"OpenAI Model: {config.openai.model}")
        print(f"OpenAI: {'✓' if status['openai'] == 'configured' else '✗'}")
        print(f"Self Critique: {'✓' if config.openai.self_critique else '✗'}")
        print(f"Tool Calling: {'✓' if config.openai.tools_enabled else '✗'}")
        print(f"Generation Deadline: {config.openai.generation_deadline_seconds}s")
        print()
        print(f"Serper Search: {'✓' if status['serper_search'] == 'configured' else '✗'}")
        print(f"HubSpot CRM: {'✓' if status['hubspot_crm'] == 'configured' else '✗'}")
        print(f"People Data Labs: {'✓' if status['peopledatalabs'] == 'configured' else '✗'}")
        print()
        print("Research:")
        print(f"  Search Cache TTL: {config.search.cache_ttl_seconds}s")
        print(f"  Max Concurrent Attendees: {config.research.max_concurrent_attendees}")
        print(f"  Max Tool Rounds: {config.research.max_tool_rounds}")
        print(f"  Scrape LinkedIn: {'✓' if config.research.scrape_linkedin else '✗'}")
        print("=" * 42)
    except Exception as e:
        print(f"Error loading configuration: {e}")
