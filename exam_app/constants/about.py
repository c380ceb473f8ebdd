"""Static metadata describing ExamDesk."""

APP_NAME = "ExamDesk"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamDesk runs timed multiple-choice exams. Teachers assemble a classroom from a "
    "question bank, students join with an access code and receive a score on submit."
)
