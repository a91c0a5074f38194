from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.staticfiles import StaticFiles

from app.core import config
from app.core.errors import PlaceServiceError, ValidationError
from app.core.types import SimpleResponse
from app.features.places.routes import router as place_router
from app.features.users.routes import router as user_router
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(openapi_url="/openapi.json" if config.ENABLE_DOCS else None)
app.title = "Places"

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    content = dict(code=ValidationError.code, message=ValidationError.default_message, errors=errors)
    return JSONResponse(status_code=ValidationError.status_code, content=jsonable_encoder(content))


@app.exception_handler(PlaceServiceError)
async def place_service_exception_handler(_request: Request, exc: PlaceServiceError):
    if exc.status_code >= 500:
        log.error("%s: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=dict(code=exc.code, message=exc.message))


@app.get("/", response_model=SimpleResponse)
async def index():
    return SimpleResponse(success=True)


if config.IMAGE_STORE_BACKEND == "local":
    # Image references are file paths relative to the working directory, so they double as URL paths
    app.mount(
        f"/{config.UPLOAD_DIR.strip('/')}",
        StaticFiles(directory=config.UPLOAD_DIR, check_dir=False),
        name="images",
    )

app.include_router(user_router, prefix="/users")
app.include_router(place_router, prefix="/places")
