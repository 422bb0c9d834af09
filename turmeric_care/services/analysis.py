"""
Analysis Orchestrator

upload -> pending record -> classify -> enrich -> persist -> return

Each analysis is created "analyzing" and finalized exactly once, as
"completed" on success or "failed" when anything after record creation
raises. Failures are re-raised to the caller after the record is marked.
There is no retry and no orchestration-level timeout.
"""
import logging
from typing import List, Optional

from turmeric_care import dependencies
from turmeric_care.config import HISTORY_LIMIT
from turmeric_care.models import Analysis, AnalysisOutcome, AnalysisStatus, Severity
from turmeric_care.services.disease_detection import classify_image
from turmeric_care.services.treatment import get_treatment_info
from turmeric_care.utils.upload import decode_image, validate_data_url

logger = logging.getLogger(__name__)

FAILED_OUTCOME = AnalysisOutcome(
    detected_disease="Analysis Failed",
    confidence=0,
    severity=Severity.MODERATE,
    symptoms=["Unable to analyze image"],
    treatment="Please try again with a clearer image of the turmeric leaf.",
    sources=[],
)


def create_pending_analysis(image_base64: str, user_id: Optional[str] = None, store=None) -> Analysis:
    """Validate the image, create the "analyzing" record and store the image.

    Raises UploadValidationError before anything is written.
    """
    store = store or dependencies.store
    content_type, image_bytes = validate_data_url(image_base64)
    width, height = decode_image(image_bytes)

    analysis = store.create_analysis(user_id=user_id)
    logger.info(f"Created analysis {analysis.id} ({width}x{height}, user: {user_id or 'anonymous'})")

    try:
        storage_id, image_url = store.save_image(image_bytes, content_type)
        store.attach_image(analysis.id, image_url, storage_id)
        analysis.image_url = image_url
        analysis.image_storage_id = storage_id
    except Exception as e:
        # The diagnosis does not depend on the stored copy
        logger.error(f"Failed to store image for analysis {analysis.id}: {e}")

    return analysis


async def run_analysis(analysis_id: str, image_base64: str, store=None, client=None) -> Analysis:
    """Classify, enrich and finalize a pending analysis."""
    store = store or dependencies.store

    try:
        classification = await classify_image(image_base64, client=client)

        treatment = await get_treatment_info(
            classification.detected_disease,
            classification.symptoms,
            store=store,
            client=client,
        )

        outcome = AnalysisOutcome(
            detected_disease=classification.detected_disease,
            confidence=classification.confidence,
            severity=classification.severity,
            symptoms=classification.symptoms,
            treatment=treatment.treatment,
            summary=classification.summary,
            sources=treatment.sources,
        )
        completed = store.finalize_analysis(analysis_id, outcome, AnalysisStatus.COMPLETED)
        logger.info(f"✅ Analysis {analysis_id} completed: {completed.detected_disease}")
        return completed

    except Exception as e:
        logger.error(f"Analysis {analysis_id} failed: {e}", exc_info=True)
        try:
            store.finalize_analysis(analysis_id, FAILED_OUTCOME, AnalysisStatus.FAILED)
        except Exception as mark_error:
            logger.error(f"Could not mark analysis {analysis_id} as failed: {mark_error}")
        raise


async def analyze_image(image_base64: str, user_id: Optional[str] = None, store=None, client=None) -> str:
    """Run the whole pipeline for one image and return the analysis id."""
    analysis = create_pending_analysis(image_base64, user_id=user_id, store=store)
    await run_analysis(analysis.id, image_base64, store=store, client=client)
    return analysis.id


def get_analysis(analysis_id: str, store=None) -> Optional[Analysis]:
    store = store or dependencies.store
    return store.get_analysis(analysis_id)


def get_user_analyses(user_id: Optional[str], store=None) -> List[Analysis]:
    """Up to HISTORY_LIMIT analyses for the user, newest first"""
    if not user_id:
        return []
    store = store or dependencies.store
    return store.list_user_analyses(user_id, HISTORY_LIMIT)
