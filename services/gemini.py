"""
Google Gemini vision service for classifying waste items and rating street cleanliness.
"""

import asyncio
import base64
import json
import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import google.generativeai as genai

from schemas import CleanlinessStatus, StreetAnalysis, WasteAnalysis, WasteCategory

logger = logging.getLogger(__name__)

# Configure Gemini API with environment variable
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# Hard cutoff for one classification request, in seconds
CLASSIFICATION_TIMEOUT_SECONDS = 20.0

if GEMINI_API_KEY:
    genai.configure(api_key=GEMINI_API_KEY)


WASTE_PROMPT = """
Analyze the waste in this image and classify it.

Return ONLY valid JSON in this format:
{
  "category": "Plastic",
  "confidence": 95,
  "items": ["plastic bottle", "bottle cap"],
  "recyclable": true,
  "disposal_method": "Rinse the bottle thoroughly, remove the cap, and place both in the recycling bin. Check local guidelines for plastic type acceptance.",
  "environmental_impact": "Plastic bottles can take up to 450 years to decompose in landfills. When not recycled, they break down into microplastics that pollute waterways and harm marine life."
}

Rules:
- category must be one of: Plastic, Paper, Metal, Glass, Organic, Electronic, Hazardous, Other
- confidence is a number from 0-100
- items is an array of detected waste items
- recyclable is true or false
- disposal_method must give clear, actionable disposal instructions
- environmental_impact must explain what happens if disposed incorrectly

Return ONLY the JSON, nothing else.
"""

STREET_PROMPT = """
Analyze the street cleanliness in this image.

Return ONLY valid JSON in this format:
{
  "cleanliness_score": 75,
  "status": "moderate",
  "litter_count": 3,
  "litter_types": ["plastic bottle", "paper wrapper"],
  "issues": ["Visible litter on sidewalk", "Trash near curb"],
  "recommendations": ["Increase street sweeping frequency", "Add more public bins"],
  "severity": "moderate"
}

Rules:
- cleanliness_score: number from 0-100 (0=very dirty, 100=very clean)
- status: "clean" or "moderate" or "dirty"
- litter_count: number of visible litter items
- litter_types: array of specific litter types found
- issues: array of cleanliness problems
- recommendations: array of actionable suggestions
- severity: same as status

Return ONLY the JSON, nothing else.
"""

DEFAULT_DISPOSAL_METHOD = "Please consult local waste management guidelines."
DEFAULT_ENVIRONMENTAL_IMPACT = "Improper disposal can harm the environment."

UNANALYZABLE_WASTE = WasteAnalysis(
    category="Unknown",
    confidence=0,
    items=[],
    recyclable=False,
    disposal_method="Unable to analyze. Please check local waste guidelines.",
    environmental_impact="Unable to determine environmental impact.",
)

UNANALYZABLE_STREET = StreetAnalysis(
    cleanliness_score=0,
    status=CleanlinessStatus.unknown,
    litter_count=0,
    litter_types=[],
    issues=["Unable to analyze image"],
    recommendations=[],
    severity=CleanlinessStatus.unknown,
)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

_CATEGORY_LOOKUP = {c.value.lower(): c.value for c in WasteCategory}


class ClassificationTimeoutError(Exception):
    """Raised when Gemini does not answer within the timeout."""


@dataclass
class ClassificationResult:
    """Outcome of one classification call; data is always usable."""
    success: bool
    data: Any
    error: Optional[str] = None


def get_gemini_model():
    """
    Get configured Gemini model instance.

    Returns:
        GenerativeModel instance or None if API key not configured
    """
    if not GEMINI_API_KEY:
        return None
    return genai.GenerativeModel(GEMINI_MODEL)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps its JSON in."""
    return _FENCE_RE.sub("", text or "").strip()


def get_base64(image: str) -> str:
    """Accept raw base64 or a data URL and return the base64 payload."""
    return image.split(",", 1)[1] if "," in image else image


def _clamp_int(value: Any, low: int = 0, high: int = 100) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    except OverflowError:
        # Integers too large for a float
        return high if value > 0 else low
    if math.isnan(number):
        return low
    if math.isinf(number):
        return high if number > 0 else low
    return max(low, min(high, int(round(number))))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _as_str_list(value: Any) -> list:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _as_status(value: Any) -> CleanlinessStatus:
    try:
        return CleanlinessStatus(str(value).strip().lower())
    except ValueError:
        return CleanlinessStatus.unknown


def normalize_waste(data: Dict[str, Any]) -> WasteAnalysis:
    """
    Fill safe defaults for anything the model left out.

    Categories are matched case-insensitively against the fixed set;
    anything unrecognized becomes "Other".
    """
    raw_category = data.get("category")
    if raw_category:
        category = _CATEGORY_LOOKUP.get(str(raw_category).strip().lower(), WasteCategory.other.value)
    else:
        category = "Unknown"

    return WasteAnalysis(
        category=category,
        confidence=_clamp_int(data.get("confidence")),
        items=_as_str_list(data.get("items")),
        recyclable=_as_bool(data.get("recyclable", False)),
        disposal_method=data.get("disposal_method") or DEFAULT_DISPOSAL_METHOD,
        environmental_impact=data.get("environmental_impact") or DEFAULT_ENVIRONMENTAL_IMPACT,
    )


def normalize_street(data: Dict[str, Any]) -> StreetAnalysis:
    """Fill safe defaults for a street assessment; severity follows status when missing."""
    score = data.get("cleanliness_score")
    if score is None:
        score = data.get("cleanlinessScore")

    status = _as_status(data.get("status"))
    severity = _as_status(data["severity"]) if data.get("severity") else status

    return StreetAnalysis(
        cleanliness_score=_clamp_int(score),
        status=status,
        litter_count=_clamp_int(data.get("litter_count"), high=10 ** 6),
        litter_types=_as_str_list(data.get("litter_types")),
        issues=_as_str_list(data.get("issues")),
        recommendations=_as_str_list(data.get("recommendations")),
        severity=severity,
    )


PROMPTS = {"waste": WASTE_PROMPT, "street": STREET_PROMPT}
NORMALIZERS = {"waste": normalize_waste, "street": normalize_street}
UNANALYZABLE = {"waste": UNANALYZABLE_WASTE, "street": UNANALYZABLE_STREET}


async def _generate(prompt: str, image_base64: str, mime_type: str, timeout: float) -> str:
    if not GEMINI_API_KEY:
        raise ValueError("GEMINI_API_KEY environment variable is not set")

    model = get_gemini_model()
    if not model:
        raise ValueError("Failed to initialize Gemini model")

    image_part = {
        "mime_type": mime_type,
        "data": base64.b64decode(get_base64(image_base64)),
    }

    try:
        response = await asyncio.wait_for(
            model.generate_content_async([prompt, image_part]),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise ClassificationTimeoutError("Gemini request timeout") from e
    return response.text


async def analyze_image(
    kind: str,
    image_base64: str,
    mime_type: str = "image/jpeg",
    timeout: Optional[float] = None,
) -> ClassificationResult:
    """
    Classify one image with Gemini.

    Args:
        kind: "waste" or "street", selects the prompt and response schema
        image_base64: Base64 payload or data URL of the image
        mime_type: Declared media type of the image
        timeout: Override for CLASSIFICATION_TIMEOUT_SECONDS

    Returns:
        ClassificationResult. On any failure success is False and data holds
        the kind's "unanalyzable" defaults; this function does not raise.
    """
    if kind not in PROMPTS:
        return ClassificationResult(
            success=False,
            data=UNANALYZABLE_WASTE.model_copy(deep=True),
            error=f"Unsupported report kind: {kind}",
        )

    if timeout is None:
        timeout = CLASSIFICATION_TIMEOUT_SECONDS

    try:
        text = await _generate(PROMPTS[kind], image_base64, mime_type, timeout)
        data = json.loads(strip_code_fences(text))
        if not isinstance(data, dict):
            raise ValueError("Model reply is not a JSON object")
        return ClassificationResult(success=True, data=NORMALIZERS[kind](data))
    except Exception as e:
        logger.warning("%s analysis error: %s", kind.capitalize(), e)
        return ClassificationResult(
            success=False,
            data=UNANALYZABLE[kind].model_copy(deep=True),
            error=str(e),
        )


async def analyze_waste(image_base64: str, mime_type: str = "image/jpeg") -> ClassificationResult:
    """Classify the waste shown in an image."""
    return await analyze_image("waste", image_base64, mime_type)


async def analyze_street(image_base64: str, mime_type: str = "image/jpeg") -> ClassificationResult:
    """Rate the cleanliness of the street shown in an image."""
    return await analyze_image("street", image_base64, mime_type)
