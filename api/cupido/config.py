import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# Fixed quiz shape; category sums are compared raw.
QUESTION_COUNT = int(os.getenv("QUESTION_COUNT", "7"))
SCORE_INCREMENT = int(os.getenv("SCORE_INCREMENT", "2"))

COMPATIBILITY_EXPONENT = float(os.getenv("COMPATIBILITY_EXPONENT", "0.6"))
MATCH_TOP_N = int(os.getenv("MATCH_TOP_N", "3"))

MESSAGE_MAX_LENGTH = int(os.getenv("MESSAGE_MAX_LENGTH", "500"))
THREAD_MESSAGE_LIMIT = int(os.getenv("THREAD_MESSAGE_LIMIT", "200"))
GROUP_MESSAGE_LIMIT = int(os.getenv("GROUP_MESSAGE_LIMIT", "100"))

DISPLAY_NAME_MAX_LENGTH = 80
CONTACT_HANDLE_MAX_LENGTH = 50
COURSE_CODE_MAX_LENGTH = 40
IDENTITY_MAX_LENGTH = 128

GENDERS = ("m", "f")
PREFERENCES = ("m", "f", "mf")
STUDY_YEARS = ("year_1", "year_2", "year_3")

RL_PROFILE_SUBMIT_LIMIT = int(os.getenv("RL_PROFILE_SUBMIT_LIMIT", "30"))
RL_THREAD_CREATE_LIMIT = int(os.getenv("RL_THREAD_CREATE_LIMIT", "60"))
RL_MESSAGE_SEND_LIMIT = int(os.getenv("RL_MESSAGE_SEND_LIMIT", "120"))
RL_WINDOW_SECONDS = int(os.getenv("RL_WINDOW_SECONDS", "60"))
# Per-IP ceiling, as a multiple of the per-participant limit.
RL_IP_LIMIT_MULTIPLIER = int(os.getenv("RL_IP_LIMIT_MULTIPLIER", "10"))
