# grouper/config/settings.py

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Defaults applied when a caller leaves a setting out
    GROUP_SIZE_DEFAULT: int = 4
    ALLOW_PARTIAL_GROUPS_DEFAULT: bool = True
    GENDER_MODE_DEFAULT: str = "mixed"
    LOCALE_DEFAULT: str = "en-US"

    # Preference scoring
    WANT_WITH_SCORE: float = 2.0
    AVOID_SCORE: float = -2.0

    # Simulated annealing schedule
    ANNEALING_INITIAL_TEMPERATURE: float = 100.0
    ANNEALING_COOLING_RATE: float = 0.95
    ANNEALING_MIN_TEMPERATURE: float = 0.01
    ANNEALING_MAX_ITERATIONS: int = 1000

    # Weight balancing
    BALANCE_MAX_ITERATIONS: int = 150

    class Config:
        env_file = ".env"
        env_prefix = "GROUPER_"

settings = Settings()
