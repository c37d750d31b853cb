from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models
from .core.config import settings
from .core.exceptions import GetCashError
from .core.logger import logger
from .database import engine
from .initial_data import init_db
from .routers import auth_router, tasks_router, user_router, withdrawal_router, admin_router, health_router

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router, prefix="/api")
app.include_router(tasks_router, prefix="/api")
app.include_router(user_router, prefix="/api")
app.include_router(withdrawal_router, prefix="/api")
app.include_router(admin_router, prefix="/api")

# --- Error rendering: every failure is {"message": ...} ---

@app.exception_handler(GetCashError)
async def getcash_error_handler(request: Request, exc: GetCashError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content = {"message": exc.message, "code": exc.code}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=getattr(exc, "headers", None))

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request body", "code": "VALIDATION_ERROR", "errors": errors},
    )

# --- Startup ---
@app.on_event("startup")
def on_startup():
    models.Base.metadata.create_all(bind=engine)
    init_db()
    logger.info(f"{settings.PROJECT_NAME} started")
