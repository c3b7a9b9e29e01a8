"""
FastAPI dependencies.

The ReportingContext is created in the application lifespan (or handed to
create_app by tests) and stored on ``app.state.context``; routes receive
it through ``ContextDep``.
"""

from typing import Annotated

from fastapi import Depends, Request

from storeops.application.context import ReportingContext


def get_context(request: Request) -> ReportingContext:
    """
    Retrieve the ReportingContext from application state.

    Raises:
        RuntimeError: The lifespan has not built a context yet
    """
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError(
            "ReportingContext not initialized in app.state; "
            "the application lifespan startup did not complete."
        )
    return context


ContextDep = Annotated[ReportingContext, Depends(get_context)]
