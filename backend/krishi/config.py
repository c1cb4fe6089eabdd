# backend/krishi/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

dotenv_path = Path(__file__).parents[2] / '.env'
load_dotenv(dotenv_path)


class Settings:
    # --- LLM (chat advisor) ---
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str   = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT_SEC: float = float(os.getenv("LLM_TIMEOUT_SEC", "30"))
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))

    # --- OpenWeather ---
    OPENWEATHER_API_KEY: str  = os.getenv("OPENWEATHER_API_KEY", "")
    OPENWEATHER_BASE_URL: str = os.getenv("OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5")

    # --- Market data (Agmarknet / data.gov.in proxy) ---
    MARKET_API_KEY: str = os.getenv("MARKET_API_KEY", "")
    MARKET_API_URL: str = os.getenv("MARKET_API_URL", "")
    MARKET_TIMEOUT_SEC: float = float(os.getenv("MARKET_TIMEOUT_SEC", "10"))

    # --- Roboflow (pest detection) ---
    ROBOFLOW_API_KEY: str  = os.getenv("ROBOFLOW_API_KEY", "")
    ROBOFLOW_MODEL: str    = os.getenv("ROBOFLOW_MODEL", "")
    ROBOFLOW_BASE_URL: str = os.getenv("ROBOFLOW_BASE_URL", "https://detect.roboflow.com")
    PEST_TIMEOUT_SEC: float = float(os.getenv("PEST_TIMEOUT_SEC", "30"))
    PEST_MAX_UPLOAD_BYTES: int = int(os.getenv("PEST_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # --- Server ---
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def market_configured(self) -> bool:
        return bool(self.MARKET_API_KEY and self.MARKET_API_URL)

    @property
    def roboflow_configured(self) -> bool:
        return bool(self.ROBOFLOW_API_KEY and self.ROBOFLOW_MODEL)


settings = Settings()
