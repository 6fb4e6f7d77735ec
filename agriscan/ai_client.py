"""Groq vision wrappers: crop identification and full plant diagnosis."""
import json
import logging
import re

import groq
from groq import Groq

from . import config
from .errors import ParseError, TransportError
from .models import AnalysisResult, CropDetails, Severity
from .serializers import result_from_payload

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9\-.+]+);base64,(.+)$", re.DOTALL)
IMAGE_PREFIX_RE = re.compile(r"^data:image/\w+;base64,")

CROP_PROMPT = (
    "Identify the main crop/plant in this image. Respond with ONLY the common name of the crop "
    "(e.g., 'Tomato', 'Maize', 'Coffee'). If unsure, provide the best guess."
)

STRING_FIELDS = [
    "disease", "confidence", "recommended_water_liters", "recommended_fertilizer",
    "recommended_pesticide", "recommended_pesticide_market_value", "organic_solution",
    "inorganic_solution", "treatment_instructions", "overuse_warning",
]

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        **{name: {"type": "string"} for name in STRING_FIELDS},
        "severity": {"type": "string", "enum": [s.value for s in Severity]},
        "symptoms": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["disease", "confidence", "severity", "symptoms"] + STRING_FIELDS[2:],
    "additionalProperties": False,
}


def split_data_uri(data_uri: str):
    """Return (mime_type, base64_data) for an image data URI.

    Anything that is not a well-formed ``data:<type>;base64,`` URI is treated
    as bare base64 JPEG data.
    """
    match = DATA_URI_RE.match(data_uri)
    if match:
        return match.group(1), match.group(2)
    return "image/jpeg", IMAGE_PREFIX_RE.sub("", data_uri)


def extract_json(text: str) -> dict:
    """Decode the outermost ``{...}`` span of a model reply."""
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end < start:
        raise ParseError("No JSON object found in model response")
    try:
        return json.loads(text[start:end + 1])
    except ValueError as e:
        raise ParseError(f"Model response is not valid JSON: {e}") from e


def build_analysis_prompt(details: CropDetails) -> str:
    location = ""
    if details.location:
        location = f"\n- GPS Location: Lat {details.location.latitude}, Long {details.location.longitude}"
    return f"""Act as an expert agronomist and plant pathologist. Analyze the provided image of a plant.

Context provided by farmer:
- Crop Type: {details.crop_type}
- Soil Type: {details.soil_type}
- Plant Age: {details.plant_age}{location}

Task:
1. Identify any disease or deficiency present in the plant. If the plant is healthy, set disease to "Healthy".
2. Assess the severity as one of: low, medium, high.
3. List 3-5 specific visual symptoms or affected plant parts (e.g., "Yellowing leaf margins", "Brown spots on stem").
4. Give a confidence score as a percentage (e.g., "95%").
5. For the crop type, age and condition recommend precise quantities for immediate care:
   water (liters per plant/plot) and fertilizer (type and amount in kg/g).
6. Recommend treatments with ESTIMATED MARKET VALUES:
   - organic_solution in the format "Product Name | Price | Benefit/Application"
   - inorganic_solution in the format "Chemical Name | Price | Benefit/Application"
   - recommended_pesticide: the most effective commercial product name
   - recommended_pesticide_market_value: its estimated current market price
7. Write step-by-step remediation in treatment_instructions with two sections labeled
   "ORGANIC PROTOCOL:" and "INORGANIC PROTOCOL:", one bullet point per line.
8. In overuse_warning, warn about chemical overuse and give safety/PPE advice.

Tone: simple, encouraging, farmer-friendly. Return only the JSON object."""


class GroqVisionClient:
    def __init__(self, api_key=config.GROQ_API_KEY, model=config.VISION_MODEL,
                 max_tokens=config.MAX_TOKENS, temperature=config.TEMPERATURE, client=None):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client
        if self.client is None and api_key:
            self.client = Groq(api_key=api_key)

    @property
    def ready(self) -> bool:
        return self.client is not None

    def _complete(self, prompt_text, data_uri, **kwargs) -> str:
        """Send text+image to the vision model and return the reply text."""
        if not self.ready:
            raise TransportError("Groq not configured: set GROQ_API_KEY in .env")
        mime_type, b64 = split_data_uri(data_uri)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt_text},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{b64}"}},
                ],
            }
        ]
        try:
            resp = self.client.chat.completions.create(
                model=self.model, messages=messages, max_tokens=self.max_tokens,
                temperature=self.temperature, **kwargs
            )
        except groq.APIError as e:
            raise TransportError(f"Groq request failed: {e}") from e
        return resp.choices[0].message.content or ""

    def predict_crop(self, data_uri: str) -> str:
        """Best-effort crop name for the form; empty string when anything fails."""
        try:
            return self._complete(CROP_PROMPT, data_uri).strip()
        except Exception as e:
            logger.warning("Crop prediction failed: %s", e)
            return ""

    def analyze_plant_image(self, data_uri: str, details: CropDetails) -> AnalysisResult:
        text = self._complete(
            build_analysis_prompt(details), data_uri,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "plant_analysis", "strict": True, "schema": ANALYSIS_SCHEMA},
            },
        )
        if not text:
            raise ParseError("No response text received")
        result = result_from_payload(extract_json(text))
        logger.info("Diagnosis for %s: %s (%s)", details.crop_type, result.disease, result.severity)
        return result
