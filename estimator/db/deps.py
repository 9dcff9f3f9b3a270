# estimator/db/deps.py
from fastapi import Request
from sqlalchemy.orm import sessionmaker

from estimator.core.cancellation import CancelScope
from estimator.core.config import get_settings
from estimator.services import Components


def get_session_factory(request: Request) -> sessionmaker:
    return request.app.state.session_factory


def get_cancel_scope() -> CancelScope:
    """Plazo por request; la operación se revierte si lo excede."""
    return CancelScope(timeout=get_settings().OPERATION_TIMEOUT_SECONDS)


def get_components(request: Request) -> Components:
    return request.app.state.components
