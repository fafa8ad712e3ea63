from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from pagecraft import config
from pagecraft.database.connection import init_db
from pagecraft.routes import apps, landing

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Pagecraft")
app.add_middleware(SessionMiddleware, secret_key=config.SESSION_SECRET)

app.include_router(landing.router)
app.include_router(apps.router)


@app.on_event("startup")
async def startup_event() -> None:
    init_db()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pagecraft.main:app", host="0.0.0.0", port=8000, reload=True)
