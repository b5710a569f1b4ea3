"""Local runner: ``python server.py`` starts the grading API under uvicorn."""

import os
from typing import Any, Dict, Mapping, Optional

import uvicorn

from codejudge.core.config import get_settings

APP_PATH = "codejudge.main:app"


def run_options(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """uvicorn keyword arguments for the current environment.

    ``ENV=dev`` (the default) binds to loopback with auto-reload; anything
    else binds every interface, as on a hosted container that injects PORT.
    """
    env = os.environ if env is None else env
    dev = env.get("ENV", "dev") == "dev"
    return {
        "host": "127.0.0.1" if dev else "0.0.0.0",
        "port": int(env.get("PORT", 8000)),
        "reload": dev,
        "log_level": get_settings().log_level.lower(),
    }


if __name__ == "__main__":
    uvicorn.run(APP_PATH, **run_options())
