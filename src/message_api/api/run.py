import uvicorn

from message_api.core.config import get_settings


def main():  # pragma: no cover
    """Serve the message API; auto reload is on only for local runs."""
    settings = get_settings()
    uvicorn.run(
        "message_api.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        # access lines are plain text; application events are JSON
        access_log=settings.environment == "local",
        reload=settings.environment == "local",
    )


if __name__ == "__main__":  # pragma: no cover
    main()
