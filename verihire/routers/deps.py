"""Request-scoped access to the application's service container."""

from fastapi import Request

from verihire.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
