"""
HTML Templates Package
"""

from .pages import render_index_page, risk_level

__all__ = [
    'render_index_page',
    'risk_level',
]
