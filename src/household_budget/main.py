import os

import uvicorn

from household_budget.app import app
from household_budget.core import settings
from household_budget.logger import get_logging_config


def run() -> None:
    port = settings.get_env_int("PORT", 8000, min_value=1, max_value=65535)
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port, log_config=get_logging_config())


if __name__ == "__main__":
    run()
