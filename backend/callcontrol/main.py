import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callcontrol.api.v1.dependencies import build_telephony_service, build_webhook_handler
from callcontrol.api.v1.router import api_v1_router
from callcontrol.core.config import settings
from callcontrol.services.telephony import InMemoryCallStore

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    # One store, service and webhook handler per process, shared by all requests
    call_store = InMemoryCallStore()
    app.state.call_store = call_store
    app.state.webhook_handler = build_webhook_handler(settings, events=call_store)
    app.state.telephony_service = build_telephony_service(settings, events=call_store)

    config = settings.telephony_config()
    logger.info(
        "Call control ready (origin=%s, voice_webhook=%s, status_callback=%s)",
        config.origin_number or "<unset>",
        config.voice_webhook_url,
        config.status_callback_url,
    )

    yield

    logger.info("Shutting down call control (%d calls tracked)", call_store.size())


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
def health_check():
    return {"status": "healthy"}
