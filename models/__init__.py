from .contact import CanonicalContact
from .session import AcquireResult, ExternalSession, SessionArtifact, SessionState, SessionStatus
from .search import Pagination, SearchFilter, SearchResult
from .enrichment_job import EnrichmentJob, EnrichmentStatus
from .profile_record import EducationEntry, ExperienceEntry, ProfileRecord

__all__ = [
    "CanonicalContact",
    "AcquireResult",
    "ExternalSession",
    "SessionArtifact",
    "SessionState",
    "SessionStatus",
    "Pagination",
    "SearchFilter",
    "SearchResult",
    "EnrichmentJob",
    "EnrichmentStatus",
    "EducationEntry",
    "ExperienceEntry",
    "ProfileRecord",
]
