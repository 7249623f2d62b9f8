from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "TalentPulse"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Event sink: the "dataset" is a Postgres schema, the table lives inside it
    database_url: str = "postgresql+asyncpg://localhost:5432/talentpulse"
    events_dataset: str = "analytics"
    events_table: str = "events"
    provisioning_location: str = "US"

    redis_url: str = "redis://localhost:6379/0"
    result_cache_ttl: int = 86400  # 24 hours

    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_max_output_tokens: int = 2048
    llm_temperature: float = 0.1
    llm_top_p: float = 0.8
    insights_max_output_tokens: int = 1024
    insights_temperature: float = 0.2

    # Object store: a Google Cloud Storage bucket
    gcp_project: str = ""
    storage_bucket: str = "talentpulse-resumes"
    storage_class: str = "STANDARD"

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    model_config = {"env_prefix": "TALENTPULSE_"}


settings = Settings()
