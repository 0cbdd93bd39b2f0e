"""
NYC TLC yellow taxi yearly trip reports.
"""

__version__ = "0.1.0"
