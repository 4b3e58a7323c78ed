# Namespace for pipeline steps
from .search_contacts import SearchContacts  # noqa: F401
from .map_contacts import MapContacts  # noqa: F401
from .fetch_profiles import FetchProfiles  # noqa: F401
from .enrich_emails import EnrichEmails  # noqa: F401
from .persist_contacts import PersistContacts  # noqa: F401
