from fastapi import Request

from docstore.core.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clock(request: Request):
    return request.app.state.clock
