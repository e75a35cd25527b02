'''
Request-scoped access to objects created at startup.
'''
from fastapi import Request

from ..common.config import Settings


def get_settings(request: Request) -> Settings:
    """Returns the Settings instance the app was created with."""
    return request.app.state.settings
