"""CORS middleware configuration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def configure_cors(app: FastAPI, allowed_origins: list[str]) -> None:
    """Allow the web client to call the search endpoints from the browser.

    Only GET and POST are exposed cross-origin; index maintenance is an
    operator action and stays same-origin.

    Args:
        app: FastAPI application instance.
        allowed_origins: List of allowed origin URLs.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-API-Key"],
        expose_headers=["X-Request-ID"],
    )
