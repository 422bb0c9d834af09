from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class Severity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class AnalysisStatus(str, Enum):
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class Disease(BaseModel):
    id: Optional[str] = None
    name: str
    scientific_name: str
    severity: Severity
    symptoms: List[str]
    causes: str
    prevention: List[str]
    treatment: str
    description: str


class Source(BaseModel):
    title: str
    url: str
    snippet: str


class Analysis(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    image_url: Optional[str] = None
    image_storage_id: Optional[str] = None
    detected_disease: str = ""
    confidence: float = 0
    severity: Severity = Severity.MODERATE
    symptoms: List[str] = Field(default_factory=list)
    treatment: str = ""
    summary: Optional[str] = None
    sources: Optional[List[Source]] = None
    status: AnalysisStatus = AnalysisStatus.ANALYZING
    created_at: Optional[str] = None


class AnalysisOutcome(BaseModel):
    """Terminal result written onto a pending analysis"""
    detected_disease: str
    confidence: float
    severity: Severity
    symptoms: List[str]
    treatment: str
    summary: Optional[str] = None
    sources: List[Source] = Field(default_factory=list)


class ClassificationResult(BaseModel):
    """Structured answer from the vision model"""
    detected_disease: str
    confidence: float
    severity: Severity
    symptoms: List[str]
    summary: str


class TreatmentInfo(BaseModel):
    treatment: str
    sources: List[Source] = Field(default_factory=list)


class User(BaseModel):
    id: Optional[str] = None
    email: str
    password_hash: str
    created_at: Optional[str] = None


class AnalyzeRequest(BaseModel):
    image_base64: str = Field(..., description="Image as a data URL (data:image/...;base64,...)")


class AnalyzeResponse(BaseModel):
    analysis_id: str
