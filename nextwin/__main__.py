"""Run the API with uvicorn: `python -m nextwin` or `nextwin-api`."""
import os

import uvicorn

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def main() -> None:
    """Serve nextwin.main:app on $HOST:$PORT (Railway sets PORT)."""
    host = os.environ.get("HOST", DEFAULT_HOST)
    try:
        port = int(os.environ.get("PORT", DEFAULT_PORT))
    except ValueError:
        port = DEFAULT_PORT
    uvicorn.run("nextwin.main:app", host=host, port=port, proxy_headers=True)


if __name__ == "__main__":
    main()
