"""
Persistence for diseases, analyses, users and leaf images.

Two backends share one interface:
- SupabaseStore: tables `diseases`, `analyses`, `users` + a Storage bucket
  (schema in scripts/setup_tables.sql)
- MemoryStore: in-process fallback used when Supabase is not configured and in tests

Terminal writes on an analysis are conditional on status = 'analyzing', so a
record can only move analyzing -> completed or analyzing -> failed, once.
"""
import itertools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from turmeric_care.errors import InvalidStatusTransition
from turmeric_care.models import (
    Analysis,
    AnalysisOutcome,
    AnalysisStatus,
    Disease,
    User,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _outcome_row(outcome: AnalysisOutcome, status: AnalysisStatus) -> Dict:
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"'{status.value}' is not a terminal status")
    row = outcome.model_dump(mode="json")
    row["status"] = status.value
    return row


# ============================================================================
# Memory backend
# ============================================================================

class MemoryStore:
    """In-process store, one instance per app"""

    backend = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = itertools.count()
        self._diseases: Dict[str, Dict] = {}
        self._analyses: Dict[str, Dict] = {}
        self._users: Dict[str, Dict] = {}
        self._images: Dict[str, Tuple[bytes, str]] = {}

    # --- diseases ---------------------------------------------------------

    def has_diseases(self) -> bool:
        return bool(self._diseases)

    def insert_disease(self, disease: Disease) -> Disease:
        row = disease.model_dump(mode="json")
        row["id"] = uuid.uuid4().hex
        with self._lock:
            row["_seq"] = next(self._seq)
            self._diseases[row["id"]] = row
        return Disease(**row)

    def list_diseases(self) -> List[Disease]:
        rows = sorted(self._diseases.values(), key=lambda r: r["_seq"])
        return [Disease(**r) for r in rows]

    def get_disease(self, disease_id: str) -> Optional[Disease]:
        row = self._diseases.get(disease_id)
        return Disease(**row) if row else None

    # --- analyses ---------------------------------------------------------

    def create_analysis(self, user_id: Optional[str] = None) -> Analysis:
        analysis = Analysis(
            id=uuid.uuid4().hex,
            user_id=user_id,
            status=AnalysisStatus.ANALYZING,
            created_at=_now(),
        )
        row = analysis.model_dump(mode="json")
        with self._lock:
            row["_seq"] = next(self._seq)
            self._analyses[analysis.id] = row
        return analysis

    def attach_image(self, analysis_id: str, image_url: str, image_storage_id: str) -> None:
        with self._lock:
            row = self._analyses.get(analysis_id)
            if row is None:
                raise KeyError(analysis_id)
            row["image_url"] = image_url
            row["image_storage_id"] = image_storage_id

    def finalize_analysis(
        self, analysis_id: str, outcome: AnalysisOutcome, status: AnalysisStatus
    ) -> Analysis:
        updates = _outcome_row(outcome, status)
        with self._lock:
            row = self._analyses.get(analysis_id)
            if row is None:
                raise KeyError(analysis_id)
            if row["status"] != AnalysisStatus.ANALYZING.value:
                raise InvalidStatusTransition(analysis_id, row["status"])
            row.update(updates)
            return Analysis(**row)

    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        row = self._analyses.get(analysis_id)
        return Analysis(**row) if row else None

    def list_user_analyses(self, user_id: str, limit: int) -> List[Analysis]:
        rows = [r for r in self._analyses.values() if r["user_id"] == user_id]
        rows.sort(key=lambda r: (r["created_at"], r["_seq"]), reverse=True)
        return [Analysis(**r) for r in rows[:limit]]

    # --- users ------------------------------------------------------------

    def insert_user(self, email: str, password_hash: str) -> User:
        user = User(id=uuid.uuid4().hex, email=email, password_hash=password_hash, created_at=_now())
        with self._lock:
            self._users[user.id] = user.model_dump()
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        for row in self._users.values():
            if row["email"] == email:
                return User(**row)
        return None

    def get_user(self, user_id: str) -> Optional[User]:
        row = self._users.get(user_id)
        return User(**row) if row else None

    # --- images -----------------------------------------------------------

    def save_image(self, data: bytes, content_type: str) -> Tuple[str, str]:
        storage_id = uuid.uuid4().hex
        self._images[storage_id] = (data, content_type)
        return storage_id, f"/images/{storage_id}"

    def load_image(self, storage_id: str) -> Optional[Tuple[bytes, str]]:
        return self._images.get(storage_id)


# ============================================================================
# Supabase backend
# ============================================================================

class SupabaseStore:
    """Store backed by Supabase Postgres tables and a Storage bucket"""

    backend = "supabase"

    def __init__(self, client, image_bucket: str):
        self.client = client
        self.image_bucket = image_bucket

    # --- diseases ---------------------------------------------------------

    def has_diseases(self) -> bool:
        result = self.client.table('diseases').select('id').limit(1).execute()
        return bool(result.data)

    def insert_disease(self, disease: Disease) -> Disease:
        row = disease.model_dump(mode="json", exclude={"id"})
        result = self.client.table('diseases').insert(row).execute()
        return Disease(**result.data[0])

    def list_diseases(self) -> List[Disease]:
        result = self.client.table('diseases').select('*').order('created_at').execute()
        return [Disease(**r) for r in result.data or []]

    def get_disease(self, disease_id: str) -> Optional[Disease]:
        result = self.client.table('diseases').select('*').eq('id', disease_id).execute()
        if result.data:
            return Disease(**result.data[0])
        return None

    # --- analyses ---------------------------------------------------------

    def create_analysis(self, user_id: Optional[str] = None) -> Analysis:
        row = Analysis(user_id=user_id).model_dump(
            mode="json", exclude={"id", "created_at", "image_url", "image_storage_id", "summary", "sources"}
        )
        result = self.client.table('analyses').insert(row).execute()
        return Analysis(**result.data[0])

    def attach_image(self, analysis_id: str, image_url: str, image_storage_id: str) -> None:
        self.client.table('analyses').update({
            'image_url': image_url,
            'image_storage_id': image_storage_id,
        }).eq('id', analysis_id).execute()

    def finalize_analysis(
        self, analysis_id: str, outcome: AnalysisOutcome, status: AnalysisStatus
    ) -> Analysis:
        updates = _outcome_row(outcome, status)

        # Conditional update: only rows still analyzing are touched
        result = self.client.table('analyses')\
            .update(updates)\
            .eq('id', analysis_id)\
            .eq('status', AnalysisStatus.ANALYZING.value)\
            .execute()

        if result.data:
            return Analysis(**result.data[0])

        current = self.get_analysis(analysis_id)
        if current is None:
            raise KeyError(analysis_id)
        raise InvalidStatusTransition(analysis_id, current.status.value)

    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        result = self.client.table('analyses').select('*').eq('id', analysis_id).execute()
        if result.data:
            return Analysis(**result.data[0])
        return None

    def list_user_analyses(self, user_id: str, limit: int) -> List[Analysis]:
        result = self.client.table('analyses')\
            .select('*')\
            .eq('user_id', user_id)\
            .order('created_at', desc=True)\
            .limit(limit)\
            .execute()
        return [Analysis(**r) for r in result.data or []]

    # --- users ------------------------------------------------------------

    def insert_user(self, email: str, password_hash: str) -> User:
        result = self.client.table('users').insert({
            'email': email,
            'password_hash': password_hash,
        }).execute()
        return User(**result.data[0])

    def get_user_by_email(self, email: str) -> Optional[User]:
        result = self.client.table('users').select('*').eq('email', email).execute()
        if result.data:
            return User(**result.data[0])
        return None

    def get_user(self, user_id: str) -> Optional[User]:
        result = self.client.table('users').select('*').eq('id', user_id).execute()
        if result.data:
            return User(**result.data[0])
        return None

    # --- images -----------------------------------------------------------

    def save_image(self, data: bytes, content_type: str) -> Tuple[str, str]:
        extension = content_type.split("/", 1)[-1].split("+")[0] or "bin"
        storage_id = f"{uuid.uuid4().hex}.{extension}"
        bucket = self.client.storage.from_(self.image_bucket)
        bucket.upload(storage_id, data, {"content-type": content_type})
        return storage_id, bucket.get_public_url(storage_id)

    def load_image(self, storage_id: str) -> Optional[Tuple[bytes, str]]:
        try:
            data = self.client.storage.from_(self.image_bucket).download(storage_id)
        except Exception as e:
            logger.error(f"Image download failed [{storage_id}]: {e}")
            return None
        extension = storage_id.rsplit(".", 1)[-1]
        return data, f"image/{extension}"
