"""
Tests for vision classification: prompt/call shape and response parsing
"""
import asyncio

import pytest
from fastapi import HTTPException

from turmeric_care.config import CLASSIFY_MAX_TOKENS, OPENAI_MODEL
from turmeric_care.errors import NoAnalysisReceived
from turmeric_care.models import Severity
from turmeric_care.services.disease_detection import (
    CLASSIFY_PROMPT,
    classify_image,
    parse_classification,
)

from conftest import LEAF_SPOT_REPLY, make_openai_client


class TestParseClassification:

    def test_json_wrapped_in_prose_and_fences(self):
        result = parse_classification(LEAF_SPOT_REPLY)
        assert result.detected_disease == "Leaf Spot Disease"
        assert result.confidence == 87
        assert result.severity == Severity.MODERATE
        assert result.symptoms == ["Brown spots with yellow halo", "Spots on older leaves"]
        assert result.summary.startswith("Several dark lesions")

    def test_bare_json(self):
        result = parse_classification(
            '{"detectedDisease": "Healthy Plant", "confidence": 95, "severity": "low", '
            '"symptoms": [], "summary": "Vibrant green leaf"}'
        )
        assert result.detected_disease == "Healthy Plant"
        assert result.severity == Severity.LOW
        assert result.symptoms == []

    def test_unparseable_reply_becomes_placeholder(self):
        result = parse_classification("I think this leaf has some kind of blight.")
        assert result.detected_disease == "Analysis Error"
        assert result.confidence == 0
        assert result.severity == Severity.MODERATE
        assert result.symptoms == ["Unable to parse analysis results"]
        assert result.summary == "Error processing image analysis"

    def test_broken_json_becomes_placeholder(self):
        result = parse_classification('{"detectedDisease": "Leaf Blight", "confidence": }')
        assert result.detected_disease == "Analysis Error"

    def test_values_are_normalised(self):
        result = parse_classification(
            '{"detectedDisease": " Leaf Blight ", "confidence": "140%", '
            '"severity": "Critical", "symptoms": "Brown margins"}'
        )
        assert result.detected_disease == "Leaf Blight"
        assert result.confidence == 100
        assert result.severity == Severity.MODERATE
        assert result.symptoms == ["Brown margins"]
        assert result.summary == ""

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_confidence_is_zero(self, value):
        reply = '{"detectedDisease": "Leaf Blight", "confidence": ' + value + ', "severity": "high"}'
        assert parse_classification(reply).confidence == 0

    def test_negative_and_non_numeric_confidence(self):
        assert parse_classification('{"detectedDisease": "X", "confidence": -5}').confidence == 0
        assert parse_classification('{"detectedDisease": "X", "confidence": "high"}').confidence == 0


class TestClassifyImage:

    def test_sends_prompt_and_image(self, png_data_url):
        client = make_openai_client(LEAF_SPOT_REPLY)

        result = asyncio.run(classify_image(png_data_url, client=client))

        assert result.detected_disease == "Leaf Spot Disease"
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == OPENAI_MODEL
        assert kwargs["max_tokens"] == CLASSIFY_MAX_TOKENS
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": CLASSIFY_PROMPT}
        assert content[1] == {"type": "image_url", "image_url": {"url": png_data_url}}

    def test_empty_completion_is_an_error(self, png_data_url):
        client = make_openai_client("")
        with pytest.raises(NoAnalysisReceived, match="No analysis received from AI"):
            asyncio.run(classify_image(png_data_url, client=client))

    def test_upstream_error_propagates(self, png_data_url):
        client = make_openai_client(ConnectionError("upstream down"))
        with pytest.raises(ConnectionError):
            asyncio.run(classify_image(png_data_url, client=client))

    def test_not_configured(self, png_data_url):
        # conftest blanks OPENAI_API_KEY, so there is no default client
        with pytest.raises(HTTPException) as exc:
            asyncio.run(classify_image(png_data_url))
        assert exc.value.status_code == 503
