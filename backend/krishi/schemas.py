from typing import Optional, List, Any, Literal
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


FEEDBACK_TYPES = ("bug", "feature", "general", "complaint", "suggestion")


def _is_number(value: Any) -> bool:
    # JSON booleans arrive as bool, which is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def _check_range(value: Any, low: float, high: float, label: str) -> float:
    if not _is_number(value) or not (low <= value <= high):
        raise PydanticCustomError(
            "out_of_range",
            "{label} must be a number between {low} and {high}",
            {"label": label, "low": low, "high": high},
        )
    return float(value)

def _check_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise PydanticCustomError("required_text", message)
    return value


# ---------- Request models ----------

class ChatRequest(BaseModel):
    message: str = Field(..., description="Farmer's question")
    lang: Optional[str] = Field(None, description="Language preference, e.g. 'en-IN', 'hi-IN'")
    crop: Optional[str] = Field(None, description="Crop the question is about")
    lat: Optional[float] = Field(None, description="Latitude in WGS84")
    lon: Optional[float] = Field(None, description="Longitude in WGS84")

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, v):
        return _check_text(v, "Message is required and must be a string")

    @field_validator("lat", mode="before")
    @classmethod
    def _lat(cls, v):
        return None if v is None else _check_range(v, -90, 90, "Latitude")

    @field_validator("lon", mode="before")
    @classmethod
    def _lon(cls, v):
        return None if v is None else _check_range(v, -180, 180, "Longitude")


class WeatherRequest(BaseModel):
    lat: float
    lon: float

    @field_validator("lat", mode="before")
    @classmethod
    def _lat(cls, v):
        return _check_range(v, -90, 90, "Latitude")

    @field_validator("lon", mode="before")
    @classmethod
    def _lon(cls, v):
        return _check_range(v, -180, 180, "Longitude")


class MarketRequest(BaseModel):
    commodity: str

    @field_validator("commodity", mode="before")
    @classmethod
    def _commodity(cls, v):
        return _check_text(v, "Commodity name is required and must be a string")


class FeedbackRequest(BaseModel):
    type: str
    message: str
    rating: Optional[float] = None
    userInfo: Optional[Any] = None

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        if v not in FEEDBACK_TYPES:
            raise PydanticCustomError(
                "feedback_type",
                "Invalid feedback type. Must be one of: {allowed}",
                {"allowed": ", ".join(FEEDBACK_TYPES)},
            )
        return v

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, v):
        return _check_text(v, "Type and message are required for feedback submission")

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v):
        if v is None:
            return None
        if not _is_number(v) or not (1 <= v <= 5):
            raise PydanticCustomError("rating", "Rating must be between 1 and 5")
        return v


# ---------- Response models ----------

class Advice(BaseModel):
    advice_text: str
    fertilizer: str
    pest_flags: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

class ChatResponse(BaseModel):
    ok: bool = True
    data: Advice


class WeatherAlert(BaseModel):
    event: str
    description: str
    severity: Literal["low", "moderate", "high"]

class WeatherData(BaseModel):
    location: str
    temp: float                      # °C, one decimal
    description: str
    humidity: float                  # %
    rainProbability: int             # 0-100
    alerts: List[WeatherAlert] = Field(default_factory=list)

class WeatherResponse(BaseModel):
    ok: bool = True
    data: WeatherData
    source: Literal["sample", "openweather"]


class MandiPrice(BaseModel):
    market: str
    min: float
    max: float
    modal: float
    date: str                        # ISO yyyy-mm-dd

class MarketData(BaseModel):
    commodity: str
    mandiPrices: List[MandiPrice] = Field(default_factory=list)
    trend: str = "stable"

class MarketResponse(BaseModel):
    ok: bool = True
    data: MarketData
    source: Literal["mock", "api", "fallback"]
    warning: Optional[str] = None


class BoundingBox(BaseModel):
    x: int
    y: int
    width: int
    height: int

class Detection(BaseModel):
    label: str
    confidence: float
    bbox: BoundingBox

class PestData(BaseModel):
    filename: str
    size: int
    detections: List[Detection] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

class PestResponse(BaseModel):
    ok: bool = True
    data: PestData
    source: Literal["mock", "roboflow", "fallback"]
    warning: Optional[str] = None


class FeedbackResponse(BaseModel):
    ok: bool = True
    message: str
    feedbackType: str
