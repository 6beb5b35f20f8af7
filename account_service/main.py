import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from account_service.core import config
from account_service.core.errors import register_exception_handlers
from account_service.database import Base, engine
from account_service.models import user  # noqa: F401
from account_service.routes import auth_routes, user_routes

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

app = FastAPI(title=config.SERVER_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': f'{config.SERVER_NAME} API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(user_routes.router, prefix='/users')


def run() -> None:
    uvicorn.run('account_service.main:app', host=config.HOST, port=config.PORT, reload=config.RELOAD)


if __name__ == '__main__':
    run()
