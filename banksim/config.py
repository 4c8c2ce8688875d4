"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./banksim.db"

    # Service
    service_name: str = "banksim"
    log_level: str = "INFO"

    # Game clock
    ms_per_game_day: int = 60_000  # 1 minute real time = 1 game day (one month)
    days_per_year: int = 12
    repayment_period_days: int = 1

    # Bank state
    starting_cash: Decimal = Decimal("100000.00")
    liquid_cash_monthly_growth: Decimal = Decimal("0.025")
    asset_name: str = "S&P 500"
    asset_initial_price: Decimal = Decimal("4500.00")
    asset_annual_growth: Decimal = Decimal("0.10")
    asset_annual_dividend: Decimal = Decimal("0.03")

    # Client limits
    daily_withdrawal_limit: Decimal = Decimal("500.00")
    max_deposit_amount: Decimal = Decimal("1000000.00")
    client_name_max_length: int = 80

    # Lending
    loan_term_years_min: int = 3
    loan_term_years_max: int = 15
    mortgage_term_years_min: int = 5
    mortgage_term_years_max: int = 30

    # Spending
    spending_events_per_month: int = 4

    # Bankruptcy: 7 years expressed in game days (7 * 12 * 30)
    bankruptcy_discharge_days: int = 2520


settings = Settings()
