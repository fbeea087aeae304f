"""Roster record source for the alliance API."""
