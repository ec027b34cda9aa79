"""Notification dispatch: channels, orchestration, status store, queue consumer and HTTP API."""
