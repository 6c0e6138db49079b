import uvicorn

from navstation.config import settings


def main():
    """Serve the API with the settings read from the environment"""
    uvicorn.run(
        "navstation.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
