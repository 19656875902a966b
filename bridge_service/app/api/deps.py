from fastapi import Request

from bridge_service.app.services.eth_service import EthClient
from bridge_service.app.services.glitch_service import GlitchClient


def get_glitch_client(request: Request) -> GlitchClient:
    return request.app.state.glitch


def get_eth_client(request: Request) -> EthClient:
    return request.app.state.eth
