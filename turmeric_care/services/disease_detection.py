import json
import logging
import math
import re
from typing import Any, Dict, List

from fastapi import HTTPException

from turmeric_care import dependencies
from turmeric_care.config import OPENAI_MODEL, CLASSIFY_MAX_TOKENS
from turmeric_care.errors import NoAnalysisReceived
from turmeric_care.models import ClassificationResult, Severity

logger = logging.getLogger(__name__)

CLASSIFY_PROMPT = """Analyze this turmeric plant leaf image for diseases. You are an expert plant pathologist specializing in turmeric (Curcuma longa) diseases.

Please provide your analysis in the following JSON format:
{
  "detectedDisease": "Disease name or 'Healthy Plant'",
  "confidence": 85,
  "severity": "low|moderate|high",
  "symptoms": ["symptom1", "symptom2", "symptom3"],
  "summary": "Brief description of what you observe"
}

Common turmeric diseases to look for:
- Leaf Spot Disease: Brown/black spots on leaves
- Rhizome Rot: Soft, mushy appearance, yellowing
- Leaf Blight: Large brown patches, leaf margin browning
- Bacterial Wilt: Sudden wilting, yellowing from bottom
- Healthy Plant: Vibrant green, no discoloration

Focus on visible symptoms like spots, discoloration, wilting, or signs of fungal/bacterial infection."""

# Used when the model answers with something that is not JSON
PARSE_FALLBACK = {
    "detectedDisease": "Analysis Error",
    "confidence": 0,
    "severity": "moderate",
    "symptoms": ["Unable to parse analysis results"],
    "summary": "Error processing image analysis",
}

# First "{" to last "}" across lines - the model may wrap JSON in prose or ``` fences
JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


def _to_confidence(value: Any) -> float:
    try:
        confidence = float(str(value).replace("%", "").strip())
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(confidence):
        return 0
    return max(0.0, min(100.0, confidence))


def _to_severity(value: Any) -> Severity:
    try:
        return Severity(str(value).strip().lower())
    except ValueError:
        return Severity.MODERATE


def _to_symptoms(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(s) for s in value if str(s).strip()]
    return [str(value)]


def extract_json_payload(raw_text: str) -> Dict[str, Any]:
    """Pull the JSON object out of the model's reply, or the fixed placeholder when that fails"""
    try:
        match = JSON_OBJECT_PATTERN.search(raw_text)
        json_str = match.group(0) if match else raw_text
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Failed to parse JSON from response, using placeholder result: {e}")
        return dict(PARSE_FALLBACK)


def parse_classification(raw_text: str) -> ClassificationResult:
    data = extract_json_payload(raw_text)

    # Normalise fields
    detected_disease = str(data.get("detectedDisease") or data.get("disease") or PARSE_FALLBACK["detectedDisease"])
    return ClassificationResult(
        detected_disease=detected_disease.strip(),
        confidence=_to_confidence(data.get("confidence", 0)),
        severity=_to_severity(data.get("severity", "moderate")),
        symptoms=_to_symptoms(data.get("symptoms")),
        summary=str(data.get("summary") or ""),
    )


async def classify_image(image_data_url: str, client=None) -> ClassificationResult:
    """Classify a turmeric leaf image with the vision model.

    ``image_data_url`` is sent as-is in an ``image_url`` content part. Malformed
    model output is downgraded to the "Analysis Error" placeholder; an empty
    completion or a transport error propagates to the caller.
    """
    client = client or dependencies.openai_client
    if not client:
        logger.error("OpenAI API key not configured")
        raise HTTPException(status_code=503, detail="Disease detection service not configured")

    logger.info(f"Starting turmeric leaf classification with {OPENAI_MODEL}")

    response = await client.chat.completions.create(
        model=OPENAI_MODEL,
        messages=[
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": CLASSIFY_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_data_url}},
                ],
            }
        ],
        max_tokens=CLASSIFY_MAX_TOKENS,
    )

    raw_text = response.choices[0].message.content if response.choices else None
    if not raw_text:
        raise NoAnalysisReceived("No analysis received from AI")

    logger.info(f"Model raw response: {raw_text[:300]}...")
    result = parse_classification(raw_text)

    if result.confidence < 50:
        logger.warning(f"Low confidence detection: {result.detected_disease} ({result.confidence})")
    logger.info(f"Disease detected: {result.detected_disease} (Confidence: {result.confidence}, Severity: {result.severity.value})")
    return result
