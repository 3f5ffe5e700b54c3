import logging
from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "MORTGAGE_"}

    # Comparison
    max_comparison_loans: int = 5
    min_comparison_loans: int = 2

    # Scenario analysis
    max_scenarios: int = 10

    # Input bounds (on top of the structural checks)
    max_interest_rate: Decimal = Decimal("50")  # Annual, percent
    max_loan_term_years: int = 50

    # Risk classification, percent of the baseline
    risk_medium_threshold_pct: Decimal = Decimal("10")
    risk_high_threshold_pct: Decimal = Decimal("20")
    neutral_interest_band_pct: Decimal = Decimal("1")

    # App
    log_level: str = "INFO"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the package loggers."""
    logging.getLogger("mortgage_engine").setLevel((level or settings.log_level).upper())
