import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from snack_orders.core import config
from snack_orders.core.logging import configure_logging
from snack_orders.database import SessionLocal, ensure_schema
from snack_orders.routes import admin_routes, auth_routes, order_routes, product_routes
from snack_orders.seed import seed_database
from snack_orders.storage import Storage

configure_logging()

app = FastAPI(title='School Snack Orders API', version=config.APP_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        ensure_schema()
        db = SessionLocal()
        try:
            seed_database(Storage(db))
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'message': 'Invalid request data', 'errors': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'message': 'Internal server error'},
    )


@app.get('/api/health')
def health():
    return {
        'status': 'ok',
        'message': 'School Snack Orders API Running',
        'version': config.APP_VERSION,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'environment': config.APP_ENV,
    }


app.include_router(auth_routes.router, prefix='/api')
app.include_router(product_routes.router, prefix='/api')
app.include_router(order_routes.router, prefix='/api')
app.include_router(admin_routes.router, prefix='/api/admin')
