import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from backend.core import config
from backend.database import Base, engine, ensure_reservation_schema, ensure_roles
from backend.errors import ApiError
from backend.models import car, role, user, user_car  # noqa: F401
from backend.routes import auth_routes, car_routes

app = FastAPI(
    title='Car Rental API',
    docs_url='/documentation',
    openapi_url='/documentation.json',
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


def error_envelope(name: str, message: str, details=None) -> dict:
    return {'error': {'name': name, 'message': message, 'details': details}}


@app.exception_handler(ApiError)
def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = '; '.join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in errors
    )
    details = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg'), 'type': error.get('type')}
        for error in errors
    ]
    return JSONResponse(
        status_code=422,
        content=error_envelope('ValidationError', message or 'Validation failed.', details),
    )


@app.exception_handler(HTTPException)
def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope('HTTPException', str(exc.detail)),
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_envelope('InternalServerError', 'Internal server error.'),
    )


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_reservation_schema()
        ensure_roles()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Car Rental API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(car_routes.router, prefix='/cars')
