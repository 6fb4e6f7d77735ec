import json
from types import SimpleNamespace

import pytest

from agriscan.models import AnalysisResult, CropDetails
from agriscan.storage import AppStore, MemoryStorage

TINY_JPEG_URI = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ=="

TREATMENT = """ORGANIC PROTOCOL:
- Remove infected leaves and burn them
- Spray neem oil 5ml/L every 7 days
INORGANIC PROTOCOL:
1. Spray Mancozeb 75WP at 2.5g/L
2. Repeat after 10 days"""


def blight_payload(**overrides):
    payload = {
        "disease": "Early Blight",
        "confidence": "92%",
        "severity": "medium",
        "symptoms": ["Brown spots on lower leaf", "Yellowing leaf margins"],
        "recommended_water_liters": "2 L per plant",
        "recommended_fertilizer": "NPK 10-10-10, 50 g per plant",
        "recommended_pesticide": "Mancozeb 75WP",
        "recommended_pesticide_market_value": "$12",
        "organic_solution": "Neem Oil | $8 | Apply weekly to leaf undersides",
        "inorganic_solution": "Mancozeb 75WP | $12 | Protective fungicide spray",
        "treatment_instructions": TREATMENT,
        "overuse_warning": "Wear gloves and a mask; never exceed the label dose.",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload():
    return blight_payload()


@pytest.fixture
def result():
    return AnalysisResult(**blight_payload())


@pytest.fixture
def healthy_result():
    return AnalysisResult(**blight_payload(disease="Healthy", severity="low", symptoms=[]))


@pytest.fixture
def details():
    return CropDetails(cropType="Tomato", soilType="Loam", plantAge="45 days")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return AppStore(storage)


class FakeCompletions:
    """Stands in for ``Groq().chat.completions``; replies or raises in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_groq():
    def make(*replies):
        completions = FakeCompletions(replies)
        return SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return make


@pytest.fixture
def payload_json(payload):
    return json.dumps(payload)
