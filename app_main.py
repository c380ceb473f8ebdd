"""Application entry point for the ExamDesk server."""

from __future__ import annotations

import os
from pathlib import Path

from exam_app.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    HOST_ENV_VAR,
    PORT_ENV_VAR,
    QUESTION_BANK_ENV_VAR,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.server.api_server import start_api_server
from exam_app.utils.logging_config import configure_logging

_DEFAULT_BANK_PATH = Path(__file__).resolve().parent / "exam_app" / "data" / "question_bank.txt"


def main() -> None:
    """Initialize logging, load the question bank and serve the API."""
    logger = configure_logging()
    logger.info("Starting ExamDesk server...")

    exam_manager = ExamManager()
    bank_path = Path(os.environ.get(QUESTION_BANK_ENV_VAR, _DEFAULT_BANK_PATH))
    if bank_path.exists():
        exam_manager.load_question_bank(bank_path)
    else:
        logger.warning("Question bank %s not found; starting with an empty bank", bank_path)

    host = os.environ.get(HOST_ENV_VAR, DEFAULT_HOST)
    port = int(os.environ.get(PORT_ENV_VAR, DEFAULT_PORT))
    start_api_server(exam_manager=exam_manager, host=host, port=port)


if __name__ == "__main__":
    main()
