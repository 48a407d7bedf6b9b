import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.api.api import api_router
from app.api.deps import get_order_repository
from app.core.supabase import db
from app.services.order_repository import JsonFileOrderRepository

# Logging Configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Order store: {settings.ORDER_STORE}")
    if settings.ORDER_STORE == "supabase":
        try:
            await db.get_client()
            logger.info("Supabase client initialized.")
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
    else:
        repository = get_order_repository()
        if isinstance(repository, JsonFileOrderRepository):
            try:
                repository.ensure_file()
            except OSError as e:
                logger.error(f"Failed to prepare {repository.path}: {e}")
    yield
    logger.info("Server is shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan
)

# CORS Middleware
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: Exception):
    logger.warning(f"404 - {request.method} {request.url.path}")
    return JSONResponse(
        status_code=404,
        content={"error": "NOT_FOUND", "message": "The requested resource was not found"},
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc}")
    content = {"error": "INTERNAL_SERVER_ERROR", "message": "An unexpected error occurred"}
    if settings.is_development:
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Routes answer both at the root and under the API prefix (/createOrder and /api/createOrder)
app.include_router(api_router)
app.include_router(api_router, prefix=settings.API_PREFIX)
