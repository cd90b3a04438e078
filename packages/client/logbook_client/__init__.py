"""
OSHA Logbook client

Talks to the establishment API and keeps the user's current establishment and
year selection in local storage between runs.
"""

__version__ = "0.1.0"
