"""
Run the photo wall API with uvicorn
"""
import uvicorn

from .config import config


def main():
    uvicorn.run(
        "photo_wall.api.app:app",
        host=config.host,
        port=config.port,
        log_level="debug" if config.enable_debug_logging else "info",
    )


if __name__ == "__main__":
    main()
