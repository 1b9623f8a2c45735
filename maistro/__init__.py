"""Maistro - prompt automation server for the goose agent CLI."""
