import uvicorn

from tycoon.settings import get_server_settings


def main() -> None:
    """Run the server with host and port taken from TYCOON_* settings."""
    settings = get_server_settings()
    uvicorn.run("server.app:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
