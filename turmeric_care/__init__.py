"""
TurmericCare - turmeric leaf disease identification service
"""

__version__ = "1.0.0"
