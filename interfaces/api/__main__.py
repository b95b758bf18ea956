import uvicorn

from infrastructure.config import settings


def main() -> None:
    uvicorn.run(
        "interfaces.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_env == "development",
        log_config=None,
    )


if __name__ == "__main__":
    main()
