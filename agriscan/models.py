from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Screen(str, Enum):
    LOGIN = "LOGIN"
    UPLOAD = "UPLOAD"
    DETAILS = "DETAILS"
    DASHBOARD = "DASHBOARD"
    HISTORY = "HISTORY"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SoilType(BaseModel):
    value: str
    label: str
    description: str


SOIL_TYPES = [
    SoilType(value="Loam", label="Loamy", description="Balanced mix, fertile."),
    SoilType(value="Clay", label="Clay", description="Heavy, holds water."),
    SoilType(value="Sandy", label="Sandy", description="Drains fast, light."),
    SoilType(value="Silty", label="Silty", description="Fine, holds moisture."),
    SoilType(value="Peaty", label="Peaty", description="High organic matter."),
    SoilType(value="Chalky", label="Chalky", description="Stony, alkaline."),
    SoilType(value="Alluvial", label="Alluvial", description="River basin deposits."),
    SoilType(value="Black", label="Black/Regur", description="Volcanic, clay-rich."),
    SoilType(value="Red", label="Red/Yellow", description="Iron-rich, porous."),
    SoilType(value="Laterite", label="Laterite", description="Tropical, weathered."),
    SoilType(value="Arid", label="Arid/Desert", description="Low moisture, salt."),
    SoilType(value="Saline", label="Saline", description="High salt content."),
]
SOIL_VALUES = {s.value for s in SOIL_TYPES}


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class CropDetails(BaseModel):
    """Context the farmer gives about the photographed plant."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    crop_type: str = Field(alias="cropType")
    soil_type: str = Field(alias="soilType")
    plant_age: str = Field(alias="plantAge")
    location: Optional[Location] = None

    @field_validator("soil_type")
    @classmethod
    def known_soil(cls, v: str) -> str:
        # "" is left for the form check to report as a missing field
        if v and v not in SOIL_VALUES:
            raise ValueError(f"Unknown soil type: {v}")
        return v


class AnalysisResult(BaseModel):
    """One diagnosis as returned by the vision model.

    ``severity`` stays a plain string: the model is asked for low/medium/high,
    but anything else is still shown (with a neutral style) instead of rejected.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    disease: str
    confidence: str
    severity: str
    symptoms: List[str]
    recommended_water_liters: str
    recommended_fertilizer: str
    recommended_pesticide: str
    recommended_pesticide_market_value: str
    organic_solution: str
    inorganic_solution: str
    treatment_instructions: str
    overuse_warning: str


class HistoryItem(AnalysisResult):
    id: str
    timestamp: int
    image_url: str = Field(alias="imageUrl")
    crop_details: CropDetails = Field(alias="cropDetails")

    def result(self) -> AnalysisResult:
        return AnalysisResult(**self.model_dump(include=set(AnalysisResult.model_fields)))
