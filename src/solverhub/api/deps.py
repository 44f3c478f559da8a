"""Shared route dependencies."""

from fastapi import Request

from solverhub.swap.executor import SwapOrchestrator


def get_orchestrator(request: Request) -> SwapOrchestrator:
    return request.app.state.orchestrator
