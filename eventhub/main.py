import logging

from fastapi import FastAPI

from eventhub.api.routes.routes import router
from eventhub.infrastructure import config
from eventhub.infrastructure.db.models import Base
from eventhub.infrastructure.db.seed import seed_events
from eventhub.infrastructure.db.session import engine, get_db_session

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="EventHub Ticketing")

app.include_router(router)
logger = logging.getLogger(__name__)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Storage ready at %s", engine.url.render_as_string(hide_password=True))

    if not config.seed_demo_data_enabled():
        return
    with get_db_session() as db:
        seed_events(db)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
