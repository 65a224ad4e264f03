from .applications import router as applications_router
from .approvals import router as approvals_router
from .recommendations import router as recommendations_router
from .offers import router as offers_router
from .scheduler import router as scheduler_router

__all__ = ['applications_router', 'approvals_router', 'recommendations_router', 'offers_router', 'scheduler_router']
