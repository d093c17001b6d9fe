"""ASGI entrypoint for the wellness journal API."""

from wellness_journal.api.app import create_app
from wellness_journal.containers import build_container

app = create_app(build_container())
