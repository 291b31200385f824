"""
Atelier - persisted collections, derived views and exports for studio dashboards.
"""

__version__ = "0.1.0"
