"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./fund_ledger.db"

    # Service
    service_name: str = "fund-ledger"
    log_level: str = "INFO"

    # Seed values for a newly created FundSettings record
    default_annual_interest_rate: float = 0.13
    default_minimum_fund_balance: float = 50_000.0
    default_utilization_warning_threshold: float = 0.60
    default_bob_initial_investment: float = 0.0

    # Member payouts
    cash_out_interest_rate: float = 0.13

    # Display
    currency_symbol: str = "KSH"

    # Interest accrual period used by validation warnings
    interest_period_days: int = 365


settings = Settings()
