from fastapi import Request

from ..services.container import Services


def get_services(request: Request) -> Services:
    """Dependency: serviços montados no lifespan da aplicação"""
    return request.app.state.services


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"
