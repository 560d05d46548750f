from .context import NavigationContext
from .engine import SyncEngine, WorkingCopy
from .transport import ApiTransport

__all__ = ["NavigationContext", "SyncEngine", "WorkingCopy", "ApiTransport"]
