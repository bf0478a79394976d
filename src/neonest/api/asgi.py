"""ASGI entrypoint for the NeoNEST API."""

from neonest.api.app import create_app
from neonest.containers import build_container

app = create_app(build_container())
