from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.core.config import get_settings
from app.core.exceptions import RecommendationError
from app.core.lifespan import lifespan
from app.api.v1.routers.recommendations import router as recommendations_router
from app.api.v1.routers.cache import router as cache_router
from app.api.v1.routers.health import router as health_router
from app.core.logging import configure_logging
from app.utils.cache import TTLCache

from fastapi.middleware.cors import CORSMiddleware
import logging

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL, app_name=settings.APP_NAME)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# One recommendation cache per process, shared by every request
app.state.reco_cache = TTLCache(default_ttl=settings.default_cache_ttl)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://admin.example.com"
allowed_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )

# ------- Errors -------
@app.exception_handler(RecommendationError)
async def recommendation_error_handler(request: Request, exc: RecommendationError):
    body = {"error": exc.message}
    if exc.status_code >= 500:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request parameters", "details": jsonable_encoder(exc.errors())},
    )

# ------- Routes -------
app.include_router(health_router)
app.include_router(cache_router, prefix=settings.api_prefix)            # cache stats / invalidation
app.include_router(recommendations_router, prefix=settings.api_prefix)  # related, trending, personalized
