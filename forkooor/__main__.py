import uvicorn

from forkooor.config.settings import settings


def main():
    uvicorn.run("forkooor.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
