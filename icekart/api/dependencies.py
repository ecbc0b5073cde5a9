from fastapi import Request

from icekart.engine import RaceEngine


def get_engine(request: Request) -> RaceEngine:
    """Race engine owned by the running application."""
    return request.app.state.engine
