"""
openslots - find bookable days and appointment slots in a Google Calendar.
"""

__version__ = "0.1.0"
