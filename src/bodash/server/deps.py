"""
bodash Server Dependencies

FastAPI dependency injection utilities and error translation.
"""

from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session

from bodash.api.client import OptimizerAPIClient
from bodash.api.exceptions import OptimizerAPIError, OptimizerConnectionError
from bodash.core.workflow import AccessDeniedError, MeasurementError, OptimizationWorkflow
from bodash.db.connection import get_engine
from bodash.db.repository import InvalidStateTransitionError, NotFoundError
from bodash.server.config import ServerConfig
from bodash.spec.loader import ConfigLoadError
from bodash.spec.validators import ConfigValidationError


# Global config (set during app creation)
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Get server configuration."""
    if _config is None:
        raise RuntimeError("Config not initialized")
    return _config


def set_config(config: ServerConfig) -> None:
    """Set server configuration."""
    global _config
    _config = config


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency."""
    config = get_config()
    engine = get_engine(config.database_url)
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_api_client() -> Generator[OptimizerAPIClient, None, None]:
    """Get optimization API client dependency."""
    config = get_config()
    client = OptimizerAPIClient(
        base_url=config.optimizer_api_url,
        timeout=config.optimizer_api_timeout,
    )
    try:
        yield client
    finally:
        client.close()


def get_user_id(request: Request) -> str:
    """Authenticated user from the identity header set upstream."""
    config = get_config()
    user_id = request.headers.get(config.user_header)
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be signed in",
        )
    return user_id.strip()


def get_workflow(
    db: Session = Depends(get_db),
    api: OptimizerAPIClient = Depends(get_api_client),
    user_id: str = Depends(get_user_id),
) -> OptimizationWorkflow:
    """Get a workflow for the authenticated user."""
    return OptimizationWorkflow(db, api, user_id)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Translate domain exceptions into HTTP errors."""
    try:
        yield
    except ConfigValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Configuration validation failed", "errors": e.errors},
        )
    except (ConfigLoadError, MeasurementError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except OptimizerAPIError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"API Error: {e.detail}",
        )
    except OptimizerConnectionError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Optimization API unavailable: {e}",
        )
