from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    db_path: str = "kharcha.db"
    alert_threshold: float = 80.0
    currency_symbol: str = "₹"

    @field_validator("alert_threshold")
    @classmethod
    def check_threshold(cls, v):
        if not 0 < v <= 100:
            raise ValueError("alert_threshold must be within (0, 100]")
        return v

    alert_email: str | None = None
    emailjs_service_id: str | None = None
    emailjs_template_id: str | None = None
    emailjs_public_key: str | None = None
    emailjs_url: str = Field(
        default="https://api.emailjs.com/api/v1.0/email/send",
        validation_alias="emailjs_api_url",
    )
    email_timeout: float = 10.0

    telegram_bot_token: str | None = None
    telegram_chat_id: int | None = None

    anthropic_api_key: str | None = None
    claude_model: str = "sonnet"
    claude_timeout: int = 60

    debug: bool = False


settings = Settings()
