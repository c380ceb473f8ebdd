"""Network configuration constants for the exam server."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

HOST_ENV_VAR: str = "EXAM_APP_HOST"
PORT_ENV_VAR: str = "EXAM_APP_PORT"
QUESTION_BANK_ENV_VAR: str = "EXAM_APP_QUESTION_BANK"
