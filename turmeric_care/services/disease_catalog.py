"""
Disease Catalog
Reference table of turmeric (Curcuma longa) conditions and their treatments.

Seeded once, read-only afterwards. The orchestrator matches the model's
diagnosis against this table to pick the treatment text.
"""
import logging
from typing import List, Optional

from turmeric_care.models import Disease, Severity

logger = logging.getLogger(__name__)

SEEDED_MESSAGE = "Diseases seeded successfully"
ALREADY_SEEDED_MESSAGE = "Diseases already seeded"

DISEASE_SEED = [
    Disease(
        name="Leaf Spot Disease",
        scientific_name="Taphrina maculans",
        severity=Severity.MODERATE,
        symptoms=[
            "Brown or black spots on leaves",
            "Yellowing around spots",
            "Premature leaf drop",
            "Reduced plant vigor",
        ],
        causes="Fungal infection caused by excessive moisture and poor air circulation. Common in humid conditions and overcrowded plantings.",
        prevention=[
            "Ensure proper spacing between plants",
            "Improve air circulation",
            "Avoid overhead watering",
            "Remove infected plant debris",
            "Apply preventive fungicide sprays",
        ],
        treatment="Remove affected leaves immediately. Apply copper-based fungicide or neem oil spray. Improve drainage and reduce watering frequency. Ensure good air circulation around plants.",
        description="A common fungal disease affecting turmeric leaves, characterized by dark spots that can spread rapidly in humid conditions.",
    ),
    Disease(
        name="Rhizome Rot",
        scientific_name="Pythium aphanidermatum",
        severity=Severity.HIGH,
        symptoms=[
            "Soft, mushy rhizomes",
            "Foul smell from roots",
            "Yellowing and wilting leaves",
            "Stunted growth",
            "Plant collapse",
        ],
        causes="Waterlogged soil conditions leading to fungal infection. Poor drainage and overwatering are primary causes.",
        prevention=[
            "Ensure excellent drainage",
            "Avoid overwatering",
            "Use raised beds in heavy soils",
            "Plant in well-draining soil mix",
            "Rotate crops annually",
        ],
        treatment="Remove affected plants immediately. Improve soil drainage. Apply fungicide drench with metalaxyl or fosetyl-al. Reduce watering and ensure proper soil aeration.",
        description="A serious fungal disease that attacks the rhizome system, potentially causing complete plant loss if not treated promptly.",
    ),
    Disease(
        name="Leaf Blight",
        scientific_name="Colletotrichum capsici",
        severity=Severity.MODERATE,
        symptoms=[
            "Large brown patches on leaves",
            "Leaf margins turning brown",
            "Defoliation in severe cases",
            "Reduced rhizome yield",
        ],
        causes="Fungal pathogen that thrives in warm, humid conditions. Spread through water splash and contaminated tools.",
        prevention=[
            "Use disease-free planting material",
            "Maintain proper plant spacing",
            "Apply preventive copper sprays",
            "Remove plant debris",
            "Avoid working with wet plants",
        ],
        treatment="Apply copper oxychloride or mancozeb fungicide. Remove infected leaves and destroy them. Improve air circulation and reduce leaf wetness duration.",
        description="A foliar disease that can significantly reduce plant health and rhizome production if left untreated.",
    ),
    Disease(
        name="Bacterial Wilt",
        scientific_name="Ralstonia solanacearum",
        severity=Severity.HIGH,
        symptoms=[
            "Sudden wilting of leaves",
            "Yellowing from bottom up",
            "Brown vascular discoloration",
            "Plant death within days",
            "No recovery after watering",
        ],
        causes="Soil-borne bacterial pathogen that enters through root wounds. Spreads rapidly in warm, moist conditions.",
        prevention=[
            "Use certified disease-free rhizomes",
            "Avoid soil from infected areas",
            "Practice crop rotation",
            "Maintain soil pH 6.0-7.0",
            "Ensure good drainage",
        ],
        treatment="No effective cure once infected. Remove and destroy affected plants immediately. Treat soil with copper sulfate. Plant resistant varieties in future seasons.",
        description="A devastating bacterial disease that can cause rapid plant death and soil contamination for future crops.",
    ),
    Disease(
        name="Healthy Plant",
        scientific_name="Curcuma longa",
        severity=Severity.LOW,
        symptoms=[
            "Vibrant green leaves",
            "Strong upright growth",
            "No discoloration or spots",
            "Healthy root system",
        ],
        causes="Optimal growing conditions with proper nutrition, water management, and disease prevention practices.",
        prevention=[
            "Maintain consistent care routine",
            "Monitor for early disease signs",
            "Ensure proper nutrition",
            "Regular health inspections",
            "Preventive treatments as needed",
        ],
        treatment="Continue current care practices. Monitor regularly for any changes. Maintain optimal growing conditions with balanced fertilization and proper watering.",
        description="A healthy turmeric plant showing no signs of disease or stress, indicating optimal growing conditions.",
    ),
]


def seed_diseases(store) -> str:
    """Insert the built-in catalog unless any disease already exists"""
    if store.has_diseases():
        logger.info("Disease catalog already seeded - skipping")
        return ALREADY_SEEDED_MESSAGE

    for disease in DISEASE_SEED:
        store.insert_disease(disease)

    logger.info(f"✓ Seeded {len(DISEASE_SEED)} diseases")
    return SEEDED_MESSAGE


def list_diseases(store) -> List[Disease]:
    return store.list_diseases()


def get_disease(store, disease_id: str) -> Optional[Disease]:
    return store.get_disease(disease_id)


def find_matching_disease(name: str, diseases: List[Disease]) -> Optional[Disease]:
    """
    Case-insensitive substring match in either direction.

    "leaf blight" matches "Leaf Blight"; "Severe Rhizome Rot" matches
    "Rhizome Rot"; "Leaf" matches "Leaf Spot Disease" (first entry wins).
    """
    query = (name or "").strip().lower()
    if not query:
        return None

    for disease in diseases:
        catalog_name = disease.name.lower()
        if query in catalog_name or catalog_name in query:
            return disease
    return None
