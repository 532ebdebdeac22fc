"""
agendamerge - merge user events, webinars and broadcasts into one agenda
and compute free/busy slots for booking meetings.
"""

__version__ = "0.1.0"
