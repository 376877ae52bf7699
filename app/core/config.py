from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(alias="DATABASE_URL")

    # Signing configuration (session cookie, remember cookie)
    secret_key: str = Field(alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")

    # First Admin User
    first_admin_email: str = Field(alias="FIRST_ADMIN_EMAIL")
    first_admin_password: str = Field(alias="FIRST_ADMIN_PASSWORD")

    # Password hashing and policy
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")
    password_min_length: int = Field(default=6, alias="PASSWORD_MIN_LENGTH")

    # Sessions and persistent login
    session_cookie_name: str = Field(default="session", alias="SESSION_COOKIE_NAME")
    remember_cookie_max_age_days: int = Field(
        default=7300, alias="REMEMBER_COOKIE_MAX_AGE_DAYS"
    )
    secure_cookies: bool = Field(default=False, alias="SECURE_COOKIES")

    # Password Reset
    password_reset_expire_minutes: int = Field(
        default=120, alias="PASSWORD_RESET_EXPIRE_MINUTES"
    )

    # Feed and listings
    feed_community_limit: int = Field(default=10, alias="FEED_COMMUNITY_LIMIT")
    feed_page_size: int = Field(default=30, alias="FEED_PAGE_SIZE")
    users_page_size: int = Field(default=30, alias="USERS_PAGE_SIZE")

    # Redirect targets
    root_url: str = Field(default="/api/v1/home", alias="ROOT_URL")
    login_url: str = Field(default="/api/v1/auth/login", alias="LOGIN_URL")

    # SMTP Configuration (optional)
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int | None = Field(default=None, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    smtp_from_email: str | None = Field(default=None, alias="SMTP_FROM_EMAIL")

    # Frontend URL for CORS and for activation / password reset links
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")

    @field_validator(
        "smtp_host", "smtp_user", "smtp_password", "smtp_from_email", "frontend_url",
        mode="before",
    )
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("smtp_port", mode="before")
    @classmethod
    def empty_str_to_none_int(cls, v: str | int | None) -> int | None:
        """Convert empty strings to None for optional integer fields."""
        if v == "":
            return None
        if isinstance(v, str):
            try:
                return int(v)
            except ValueError:
                return None
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def bcrypt_rounds_in_range(cls, v: int) -> int:
        """bcrypt only accepts a cost between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @property
    def remember_cookie_max_age(self) -> int:
        """Lifetime of the persistent login cookies, in seconds."""
        return self.remember_cookie_max_age_days * 24 * 60 * 60

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
