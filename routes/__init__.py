# Routes package for the counterfeit checker
from .analyze import router as analyze_router

__all__ = [
    'analyze_router',
]
