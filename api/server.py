"""
taskdesk API Server - REST surface for the assistant's tool calls.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import os

import uvicorn
from fastapi import FastAPI

from api.task_router import router as task_router
from taskdesk import config
from taskdesk.observability import configure_logging


def create_app() -> FastAPI:
    app = FastAPI(
        title="taskdesk API",
        description="Registry-driven Asana task creation",
        version="1.0.0",
    )
    app.include_router(task_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def run(host: str = "0.0.0.0", port: int | None = None) -> None:
    configure_logging(config.LOG_LEVEL)
    uvicorn.run(app, host=host, port=port or int(os.getenv("PORT", "8420")))


if __name__ == "__main__":
    run()
