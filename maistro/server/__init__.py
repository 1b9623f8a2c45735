"""Maistro server: HTTP API, WebSocket streaming and the execution pipeline."""
