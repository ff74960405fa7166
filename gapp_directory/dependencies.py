"""Request-scoped dependencies shared by all routers"""

from fastapi import Request

from .config import Settings
from .email_service import EmailSender


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender
