"""ASGI entrypoint for the recipe wizard API."""

from recipe_wizard.api.app import create_app
from recipe_wizard.containers import build_container

app = create_app(build_container())
