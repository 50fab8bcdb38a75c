# src/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from auth.routes import router as auth_router
from course.routes import router as course_router
from access.routes import router as access_router
from subscription.routes import router as subscription_router
from progress.routes import router as progress_router
from payment.routes import router as payment_router
from admin.routes import router as admin_router
from scheduler.tasks import start_scheduler, expire_subscriptions
from config import settings
from exceptions import ServiceError, ConstraintViolation

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Course Platform Backend",
    description="API for course subscriptions and content access",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(course_router)
app.include_router(access_router)
app.include_router(subscription_router)
app.include_router(progress_router)
app.include_router(payment_router)
app.include_router(admin_router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map typed domain errors to JSON responses."""
    if isinstance(exc, ConstraintViolation) and exc.fatal:
        logger.error(f"Fatal constraint violation on {request.method} {request.url.path}: {exc.detail}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "InternalError", "detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    """Run initial tasks on startup."""
    expire_subscriptions()
    if settings.SCHEDULER_ENABLED:
        app.state.scheduler = start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown(wait=False)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Course Platform Backend!"}
