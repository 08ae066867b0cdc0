"""
FastAPI dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request

from jobdispatch.bootstrap import Components


def get_components(request: Request) -> Components:
    """
    Dependency returning the components wired into the application.

    Raises:
        RuntimeError: If the application was created without components.
    """
    components = getattr(request.app.state, "components", None)
    if components is None:
        raise RuntimeError("Components not initialized. Use create_app().")
    return components


AppComponents = Annotated[Components, Depends(get_components)]
