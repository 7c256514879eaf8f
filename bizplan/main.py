import os

import uvicorn

from bizplan.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``bizplan-api`` console script)."""
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
