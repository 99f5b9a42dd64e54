"""
ProSe Counsel - case management and AI document review for self-represented litigants.
"""

__version__ = "1.0.0"
