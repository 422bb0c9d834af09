"""
Treatment lookup: Disease Catalog first, model-written advice second.
"""
import logging
from typing import List

from turmeric_care import dependencies
from turmeric_care.config import OPENAI_MODEL, TREATMENT_MAX_TOKENS
from turmeric_care.models import TreatmentInfo
from turmeric_care.services.disease_catalog import find_matching_disease

logger = logging.getLogger(__name__)

EMPTY_ADVICE_MESSAGE = (
    "Consult with a local agricultural extension office for specific treatment recommendations."
)
UNAVAILABLE_MESSAGE = (
    "Unable to fetch treatment information. Please consult with a local agricultural expert "
    "or extension office for proper diagnosis and treatment recommendations."
)


def build_treatment_prompt(disease: str, symptoms: List[str]) -> str:
    return f"""Provide treatment recommendations for turmeric plant disease: {disease}

Symptoms observed: {", ".join(symptoms)}

Please provide:
1. Immediate treatment steps
2. Preventive measures
3. Organic/sustainable solutions when possible
4. Timeline for recovery

Format as clear, actionable advice for farmers."""


async def get_treatment_info(disease: str, symptoms: List[str], store=None, client=None) -> TreatmentInfo:
    """Catalog treatment verbatim when the diagnosis matches an entry, model advice otherwise.

    Never raises: lookup or model failures degrade to a fixed advisory message.
    """
    store = store or dependencies.store
    client = client or dependencies.openai_client

    try:
        matched = find_matching_disease(disease, store.list_diseases())
        if matched:
            logger.info(f"📚 Found disease in catalog: {matched.name}")
            return TreatmentInfo(treatment=matched.treatment, sources=[])

        logger.info(f"No catalog entry for '{disease}' - asking model for treatment advice")
        if not client:
            raise RuntimeError("OpenAI client not configured")

        response = await client.chat.completions.create(
            model=OPENAI_MODEL,
            messages=[{"role": "user", "content": build_treatment_prompt(disease, symptoms)}],
            max_tokens=TREATMENT_MAX_TOKENS,
        )
        treatment = response.choices[0].message.content if response.choices else None
        return TreatmentInfo(treatment=treatment or EMPTY_ADVICE_MESSAGE, sources=[])

    except Exception as e:
        logger.error(f"Treatment info failed: {e}", exc_info=True)
        return TreatmentInfo(treatment=UNAVAILABLE_MESSAGE, sources=[])
