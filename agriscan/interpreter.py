"""Presentation facts derived from an AnalysisResult.

Every function here is pure. The keyword tables are evaluated top to bottom
and the first matching row wins. The pathogen category is a UI label only and
never replaces the model's own disease or treatment text.
"""
import re
from typing import List, NamedTuple, Optional, Sequence

from .models import AnalysisResult, Severity

HEALTHY_MARKER = "healthy"


def is_healthy(result: AnalysisResult) -> bool:
    return HEALTHY_MARKER in result.disease.lower()


def _has_any(text: str, words: Sequence[str]) -> bool:
    return any(w in text for w in words)


# ---------------- severity ----------------
class SeverityStyle(NamedTuple):
    level: str
    fraction: float
    background: str
    text: str
    accent: str


SEVERITY_STYLES = {
    Severity.LOW.value: SeverityStyle("low", 1 / 3, "#fefce8", "#a16207", "#eab308"),
    Severity.MEDIUM.value: SeverityStyle("medium", 2 / 3, "#fff7ed", "#c2410c", "#f97316"),
    Severity.HIGH.value: SeverityStyle("high", 1.0, "#fef2f2", "#b91c1c", "#ef4444"),
}
NEUTRAL_STYLE = SeverityStyle("unknown", 0.0, "#f8fafc", "#334155", "#64748b")


def severity_style(severity: str) -> SeverityStyle:
    return SEVERITY_STYLES.get((severity or "").strip().lower(), NEUTRAL_STYLE)


# ---------------- pathogen profile ----------------
class PathogenProfile(NamedTuple):
    kind: str
    label: str
    description: str
    icon: str


# (disease keywords, symptom keywords, profile)
PATHOGEN_RULES = [
    (("fungal",), ("mold", "mildew", "fungus"),
     PathogenProfile("fungal", "Fungal Pathogen",
                     "Spore-based infection, often exacerbated by humidity.", "🍄")),
    (("viral",), ("mosaic", "mottle"),
     PathogenProfile("viral", "Viral Infection",
                     "Systemic cellular distortion, often spread by insect vectors.", "🧬")),
    (("bacterial",), ("ooze", "wilt"),
     PathogenProfile("bacterial", "Bacterial Colony",
                     "Rapid vascular collapse or localized tissue degradation.", "🦠")),
    (("pest", "insect"), ("chewed", "larvae"),
     PathogenProfile("pest", "Insect Infestation",
                     "Mechanical tissue damage and nutrient theft by pests.", "🐛")),
    (("deficiency",), ("yellowing", "chlorosis"),
     PathogenProfile("deficiency", "Nutrient Imbalance",
                     "Physiological stress due to lack of essential minerals.", "⚗️")),
]
UNSPECIFIED_PROFILE = PathogenProfile(
    "unspecified", "Pathological Anomaly",
    "Unspecified tissue abnormality detected in the image.", "🔬")


def pathogen_profile(disease: str, symptoms: Sequence[str]) -> PathogenProfile:
    d = disease.lower()
    s = " ".join(symptoms).lower()
    for disease_words, symptom_words, profile in PATHOGEN_RULES:
        if _has_any(d, disease_words) or _has_any(s, symptom_words):
            return profile
    return UNSPECIFIED_PROFILE


# ---------------- affected parts ----------------
class PartStatus(NamedTuple):
    part: str
    label: str
    active: bool
    pattern: str


# (part, label, detection keywords, [(pattern keywords, pattern)], fallback pattern)
PART_RULES = [
    ("leaves", "Leaves", ("leaf", "foliage", "blade"),
     [(("spot",), "Necrosis"), (("yellow",), "Chlorosis"), (("mosaic",), "Viral")], "General"),
    ("stem", "Stalk", ("stem", "stalk", "canker"),
     [(("brown",), "Canker"), (("weak",), "Atrophy")], "Lesion"),
    ("fruit", "Fruit", ("fruit", "berry", "cherry", "bloom"),
     [(("rot",), "Decay"), (("spot",), "Pitted")], "Pathogen"),
    ("roots", "Roots", ("root", "soil", "wilt", "base"),
     [(("soft",), "Oomycete"), (("dry",), "Blight")], "Systemic"),
]


def affected_parts(symptoms: Sequence[str]) -> List[PartStatus]:
    text = " ".join(symptoms).lower()
    parts = []
    for part, label, words, patterns, fallback in PART_RULES:
        pattern = next((name for keys, name in patterns if _has_any(text, keys)), fallback)
        parts.append(PartStatus(part, label, _has_any(text, words), pattern))
    return parts


# ---------------- per-symptom category ----------------
class SymptomCategory(NamedTuple):
    kind: str
    label: str
    icon: str


SYMPTOM_RULES = [
    (("spot", "lesion", "speck", "dot", "pitted"), SymptomCategory("lesion", "Visual: Lesion", "🎯")),
    (("yellow", "chlorosis", "pale"), SymptomCategory("chlorosis", "Visual: Chlorosis", "🟨")),
    (("mold", "fuzz", "mildew", "spore", "fungal"), SymptomCategory("fungal", "Visual: Fungal", "🍄")),
    (("wilt", "droop", "sag", "collapse", "dry"), SymptomCategory("wilt", "Visual: Wilt", "🥀")),
    (("curl", "twist", "distort", "crinkle"), SymptomCategory("distortion", "Visual: Distortion", "〰️")),
    (("mosaic", "mottle", "streak", "variegated"), SymptomCategory("viral", "Visual: Viral", "🧬")),
    (("chewed", "hole", "bite", "larvae", "insect"), SymptomCategory("pest", "Visual: Pest", "🐛")),
    (("necrosis", "brown", "dead", "rot", "canker"), SymptomCategory("necrotic", "Visual: Necrotic", "💀")),
    (("burn", "scorch", "scald"), SymptomCategory("abiotic", "Visual: Abiotic", "🔥")),
    (("stunted", "small", "weak"), SymptomCategory("stunted", "Visual: Stunted", "🚫")),
]
GENERIC_SYMPTOM = SymptomCategory("marker", "Biological Marker", "👁️")


def symptom_category(symptom: str) -> SymptomCategory:
    s = symptom.lower()
    for words, category in SYMPTOM_RULES:
        if _has_any(s, words):
            return category
    return GENERIC_SYMPTOM


# ---------------- solution strings ----------------
class Solution(NamedTuple):
    name: str
    price: str
    description: str


def parse_solution(value: str) -> Solution:
    """Split ``"Name | Price | Description"``; missing parts come back empty."""
    parts = [p.strip() for p in (value or "").split("|")]
    parts += [""] * (3 - len(parts))
    return Solution(parts[0], parts[1], parts[2])


# ---------------- treatment instructions ----------------
ORGANIC_MARKER = re.compile(r"(?<![a-z])organic protocol:", re.IGNORECASE)
INORGANIC_MARKER = re.compile(r"inorganic protocol:", re.IGNORECASE)
BULLET_CHARS = "-*•·–"


class RemediationPlan(NamedTuple):
    formatted: bool
    organic: List[str]
    inorganic: List[str]
    general: List[str]


def strip_step_marker(line: str) -> str:
    """Drop a leading bullet or numbering token (``-``, ``*``, ``•``, ``1.``, ``2)``)."""
    line = line.strip()
    i = 0
    while i < len(line) and (line[i] in BULLET_CHARS or line[i].isdigit() or line[i] in ".)"):
        i += 1
    return line[i:].strip()


def split_steps(block: str) -> List[str]:
    steps = []
    for line in block.splitlines():
        step = strip_step_marker(line)
        if step:
            steps.append(step)
    return steps


def _section(text: str, start: int, stops: List[Optional[int]]) -> str:
    ends = [s for s in stops if s is not None and s >= start]
    return text[start:min(ends)] if ends else text[start:]


def split_instructions(text: str) -> RemediationPlan:
    """Split treatment text into organic and inorganic step lists.

    Sections are found by marker first, then tokenised line by line. Without
    any marker the whole text becomes the ``general`` list.
    """
    text = text or ""
    organic = ORGANIC_MARKER.search(text)
    inorganic = INORGANIC_MARKER.search(text)
    if organic is None and inorganic is None:
        return RemediationPlan(False, [], [], split_steps(text))

    organic_start = organic.start() if organic else None
    inorganic_start = inorganic.start() if inorganic else None
    organic_steps, inorganic_steps = [], []
    if organic:
        organic_steps = split_steps(_section(text, organic.end(), [inorganic_start]))
    if inorganic:
        inorganic_steps = split_steps(_section(text, inorganic.end(), [organic_start]))
    return RemediationPlan(True, organic_steps, inorganic_steps, [])


# ---------------- full report ----------------
class DiagnosisReport(NamedTuple):
    result: AnalysisResult
    healthy: bool
    severity: Optional[SeverityStyle]
    pathogen: Optional[PathogenProfile]
    parts: Optional[List[PartStatus]]
    symptoms: Optional[List[tuple]]
    organic: Solution
    inorganic: Solution
    remediation: RemediationPlan


def build_report(result: AnalysisResult) -> DiagnosisReport:
    """Everything the dashboard shows; pathology sections are None when healthy."""
    healthy = is_healthy(result)
    return DiagnosisReport(
        result=result,
        healthy=healthy,
        severity=None if healthy else severity_style(result.severity),
        pathogen=None if healthy else pathogen_profile(result.disease, result.symptoms),
        parts=None if healthy else affected_parts(result.symptoms),
        symptoms=None if healthy else [(s, symptom_category(s)) for s in result.symptoms],
        organic=parse_solution(result.organic_solution),
        inorganic=parse_solution(result.inorganic_solution),
        remediation=split_instructions(result.treatment_instructions),
    )
