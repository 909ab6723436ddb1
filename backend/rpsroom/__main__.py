import uvicorn

from rpsroom.core.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "rpsroom.main:app",
        host=settings.rps_app_host,
        port=settings.rps_app_port,
        log_level=settings.rps_log_level.lower(),
    )


if __name__ == "__main__":
    main()
