"""Schemas shared by the OSHA Logbook API server and client."""
