# Import all routes for export
from . import notes_routes
from . import qa_routes

# Export route modules
__all__ = [
    'notes_routes',
    'qa_routes'
]
