# eva360/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eva360.core.config import settings
from eva360.core.errors import Eva360Error
from eva360.core.logging import configure_logging, fmt
from eva360.api.v1.endpoints import health, auth, captura, admin_codigos, admin_usuarios, admin_reports

configure_logging(settings)
logger = logging.getLogger("eva360")

API_V1_PREFIX = "/api/v1"

app = FastAPI(
    title=settings.APP_NAME,
    description="API de evaluaciones 360 por códigos de acceso",
    version="1.0.0",
)

# CORS (en prod: restringe orígenes con CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    meta = {
        "method": request.method,
        "url": request.url.path,
        "ip": request.client.host if request.client else None,
    }
    # Nunca se loggea el header Authorization, solo si vino
    if request.headers.get("authorization"):
        meta["hasAuth"] = True
    logger.info(fmt("REQUEST", meta))
    return await call_next(request)


# ----------------------- manejo de errores -----------------------

@app.exception_handler(Eva360Error)
async def eva360_error_handler(request: Request, exc: Eva360Error):
    meta = {"code": exc.status_code, "endpoint": request.url.path, **exc.context}
    if exc.status_code >= 500:
        logger.error(fmt(exc.message, meta))
    else:
        logger.warning(fmt(exc.message, meta))
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}")
    message = f"Errores de validación: {', '.join(parts)}"
    logger.warning(fmt(message, {"code": 400, "endpoint": request.url.path}))
    return JSONResponse(status_code=400, content={"error": message, "code": "invalid_value"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message, code = "Ruta no encontrada", "not_found"
    else:
        message, code = str(exc.detail), "http_error"
    logger.warning(fmt(message, {"code": exc.status_code, "endpoint": request.url.path, "method": request.method}))
    return JSONResponse(status_code=exc.status_code, content={"error": message, "code": code})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(fmt("Excepción no controlada", {"endpoint": request.url.path}))
    return JSONResponse(status_code=500, content={"error": "Error interno del servidor", "code": "internal"})


# Routers versionados
app.include_router(health.router,   prefix=API_V1_PREFIX)
app.include_router(auth.router,     prefix=API_V1_PREFIX)
app.include_router(captura.router,  prefix=API_V1_PREFIX)

# Admin: monta AQUÍ el prefijo /api/v1/admin
app.include_router(admin_codigos.router,  prefix=f"{API_V1_PREFIX}/admin")
app.include_router(admin_usuarios.router, prefix=f"{API_V1_PREFIX}/admin")
app.include_router(admin_reports.router,  prefix=f"{API_V1_PREFIX}/admin")


# Rutas básicas fuera de /api/v1
@app.get("/health")
def health_root():
    return {"ok": True, "status": "ok"}

@app.get("/")
def root():
    return {
        "message": "Bienvenido a la API de Eva360",
        "version": "1.0.0",
        "docs": "/docs",
        "api_v1": API_V1_PREFIX,
    }
