import logging
from typing import List

from fastapi import APIRouter, HTTPException

from turmeric_care import dependencies
from turmeric_care.models import Disease
from turmeric_care.services.disease_catalog import get_disease, list_diseases, seed_diseases

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/diseases", tags=["diseases"])


@router.get("", response_model=List[Disease])
async def read_diseases():
    return list_diseases(dependencies.store)


@router.post("/seed")
async def seed_catalog():
    return {"message": seed_diseases(dependencies.store)}


@router.get("/{disease_id}", response_model=Disease)
async def read_disease(disease_id: str):
    disease = get_disease(dependencies.store, disease_id)
    if not disease:
        raise HTTPException(status_code=404, detail="Disease not found")
    return disease
