"""ASGI entrypoint for the puff tracker API."""

from puff_tracker.api.app import create_app

app = create_app()
