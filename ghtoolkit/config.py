from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    request_timeout: float = 30.0
    rate_limit_auto_retry: bool = False
    rate_limit_max_retries: int = 3
    rate_limit_fail_fast: bool = True
    rate_limit_warning_threshold: float = 0.8
    rate_limit_default_retry_after: float = 60.0
    rate_limit_proactive: bool = True
    log_format: str = "text"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
