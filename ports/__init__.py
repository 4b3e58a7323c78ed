from .automation import AutomationSurfacePort, SurfaceFactory
from .http import HttpResponsePort, HttpSessionPort
from .repos import LeadsRepoPort, SessionStorePort

__all__ = [
    "AutomationSurfacePort",
    "SurfaceFactory",
    "HttpResponsePort",
    "HttpSessionPort",
    "LeadsRepoPort",
    "SessionStorePort",
]
