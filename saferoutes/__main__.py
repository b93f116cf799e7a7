import uvicorn

from saferoutes.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("saferoutes.main:app", host=settings.app_host, port=settings.app_port, reload=settings.env == "dev")


if __name__ == "__main__":
    main()
