"""
PetroDepot - fuel distribution management back end.
"""

__version__ = "1.0.0"
