"""Entry point: python -m codeclip"""

import uvicorn

from codeclip.config import settings


def main():
    uvicorn.run(
        "codeclip.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
