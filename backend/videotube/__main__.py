"""Run the API server: `python -m videotube`."""

import uvicorn

from videotube.config import settings


def main() -> None:
    uvicorn.run("videotube.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
