import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError

from pricecatalog.api.routes import router
from pricecatalog.config.settings import settings
from pricecatalog.jobs.queue import schedule_product_reindexing
from pricecatalog.logging_utils import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    try:
        schedule_product_reindexing()
    except RedisError:
        logger.warning("could not reach the job queue, re-index schedule unchanged", exc_info=True)
    yield


app = FastAPI(title="pricecatalog", lifespan=lifespan)
app.include_router(router)
