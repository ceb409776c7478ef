import uvicorn

from eventvote.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("eventvote.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
