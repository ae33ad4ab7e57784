"""Run the API with uvicorn: ``python -m dinostroids_api``."""

import uvicorn

from dinostroids_api.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "dinostroids_api.api:app",
        host=settings.api_host,
        port=settings.api_port,
    )
