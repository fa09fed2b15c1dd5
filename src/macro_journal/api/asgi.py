"""ASGI entrypoint for the macro journal API."""

from macro_journal.api.app import create_app
from macro_journal.containers import build_container

app = create_app(build_container())
