from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from tenantgate.domain.errors import RateLimited
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    headers = None
    if isinstance(exc.base_error, RateLimited):
        headers = {"Retry-After": str(exc.base_error.retry_after)}
    return JSONResponse(
        status_code=exc.status_code, content={"error": error_dict}, headers=headers
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "The given data was invalid"
    if errors:
        # loc starts with the source (body, query, path)
        field = ".".join(str(part) for part in errors[0].get("loc", ())[1:])
        message = f"{field}: {errors[0]['msg']}" if field else errors[0]["msg"]
    error_dict = {"code": "VALIDATION_ERROR", "message": message}
    logger.warning(f"Request validation failed: {error_dict}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"error": error_dict}
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def create_app(ApplicationConfig) -> FastAPI:
    ApplicationConfig.validate()

    app = FastAPI(title="tenantgate", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from tenantgate.api.routes import (
        auth,
        email_verification,
        health_check,
        magic_link,
        two_factor,
        users,
        webhooks,
    )

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, prefix=prefix, tags=["Authentication"])
    app.include_router(magic_link.router, prefix=prefix, tags=["Magic Link"])
    app.include_router(email_verification.router, prefix=prefix, tags=["Email Verification"])
    app.include_router(two_factor.router, prefix=prefix, tags=["Two-Factor"])
    app.include_router(users.router, prefix=prefix, tags=["Users"])
    app.include_router(webhooks.router, prefix=prefix, tags=["Webhooks"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app
