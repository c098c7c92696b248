import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AccessError
from app.core.logging import configure_logging
from app.db.init_db import init_db
from app.api.routes.auth import router as auth_router
from app.api.routes.me import router as me_router
from app.api.routes.users import router as users_router
from app.api.routes.teams import router as teams_router
from app.api.routes.projects import router as projects_router
from app.api.routes.roles import router as roles_router
from app.api.routes.audits import router as audits_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="TeamHub")
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(users_router)
app.include_router(teams_router)
app.include_router(projects_router)
app.include_router(roles_router)
app.include_router(audits_router)


@app.exception_handler(AccessError)
def access_error_handler(request: Request, exc: AccessError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": f"{where}: {message}" if where else message})


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("database ready at %s", settings.DATABASE_URL.split("@")[-1])


@app.get("/healthz")
def healthz():
    return {"ok": True}
