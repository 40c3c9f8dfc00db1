import uvicorn

from canva_bridge.config import settings


def main() -> None:
    uvicorn.run("canva_bridge.api.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
