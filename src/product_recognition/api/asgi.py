"""ASGI entrypoint for the product recognition API."""

from product_recognition.api.app import create_app
from product_recognition.containers import build_container

app = create_app(build_container())
