"""Main application entry point.

Runs FastAPI with NiceGUI mounted for the reader interface, or the two as
separate processes.
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _api_base_url(host: str, port: int) -> str:
    return os.getenv("API_BASE_URL", f"http://{host}:{port}")


def run_integrated() -> None:
    """Run FastAPI with NiceGUI mounted on the same server.

    FastAPI handles the chat relay, NiceGUI handles the reader UI.
    Both are served on PORT (default 8000).
    """
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    # reader_page reads the relay address at import time
    os.environ["API_BASE_URL"] = _api_base_url(host, port)

    import uvicorn
    from nicegui import ui

    from opendocs.api.app import create_app
    from opendocs.ui.reader_page import STORAGE_SECRET, reader_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="OpenDocs",
        favicon="📄",
        storage_secret=STORAGE_SECRET,
    )

    logger.info(f"Starting integrated server on http://{host}:{port}")
    logger.info(f"Reader available at http://{host}:{port}/")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the API and the reader as separate processes.

    The relay API listens on PORT (default 8000). The reader listens on
    UI_PORT (default 8080), or opens a native desktop window when
    OPENDOCS_NATIVE=1, and is pointed at the API through API_BASE_URL.
    Stops both processes as soon as either one exits.
    """
    host = os.getenv("HOST", "127.0.0.1")
    api_port = int(os.getenv("PORT", "8000"))
    ui_env = {**os.environ, "API_BASE_URL": _api_base_url(host, api_port)}

    logger.info(f"Starting chat relay API on http://{host}:{api_port}")
    api_proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "opendocs.api.app:create_app",
            "--factory",
            "--host",
            host,
            "--port",
            str(api_port),
        ]
    )

    logger.info(f"Starting reader against {ui_env['API_BASE_URL']}")
    ui_proc = subprocess.Popen([sys.executable, "-m", "opendocs.ui.reader_page"], env=ui_env)

    processes = {"API": api_proc, "Reader": ui_proc}
    try:
        while True:
            exited = [name for name, proc in processes.items() if proc.poll() is not None]
            if exited:
                logger.info(f"{', '.join(exited)} process exited, shutting down")
                break
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        for proc in processes.values():
            if proc.poll() is None:
                proc.terminate()
        for proc in processes.values():
            proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the API and the reader on different ports,
    which is also how the native desktop window is launched.
    Default is integrated mode (both on PORT, default 8000).
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting OpenDocs in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
