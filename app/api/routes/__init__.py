"""
API Routes Package
"""
from . import (
    health,
    settings,
    templates,
    library,
    install,
    favorites,
    n8n_status,
)
