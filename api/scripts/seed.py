import argparse
import random
import sys
import uuid
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from sqlalchemy import text

from cupido.config import GENDERS, PREFERENCES, QUESTION_COUNT, STUDY_YEARS
from cupido.database import SessionLocal
from cupido.main import init_schema
from cupido.services.profiles import upsert_profile
from cupido.services.scoring import CATEGORIES

FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diogo", "Eva", "Filipe", "Gil", "Helena", "Ines", "Joao", "Lara", "Miguel"]
COURSES = ["LEI", "LEGI", "MEC", "BIO", "ARQ", "ECO"]

_RESET_TABLES = (
    "group_message",
    "chat_message",
    "chat_thread",
    "group_membership",
    "match_edge",
    "profile_event",
    "chat_event",
    "participant_profile",
)


def _random_payload(rng: random.Random, clustered: bool) -> dict:
    if clustered:
        favourite = rng.choice(CATEGORIES)
        answers = [favourite if rng.random() < 0.6 else rng.choice(CATEGORIES) for _ in range(QUESTION_COUNT)]
    else:
        answers = [rng.choice(CATEGORIES) for _ in range(QUESTION_COUNT)]
    return {
        "display_name": f"{rng.choice(FIRST_NAMES)} {rng.randint(1, 99)}",
        "contact_handle": f"@seed_{rng.randint(1000, 9999)}",
        "gender": rng.choice(GENDERS),
        "preference": rng.choice(PREFERENCES),
        "course_code": rng.choice(COURSES),
        "study_year": rng.choice(STUDY_YEARS),
        "answers": answers,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed dummy Cupido participants")
    parser.add_argument("--n-users", type=int, default=40)
    parser.add_argument("--reset", action="store_true")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--clustered", action="store_true")
    args = parser.parse_args()

    init_schema()
    rng = random.Random(args.seed)
    with SessionLocal() as db:
        if args.reset:
            for table in _RESET_TABLES:
                db.execute(text(f"DELETE FROM {table}"))
            db.commit()
        for _ in range(args.n_users):
            identity = str(uuid.UUID(int=rng.getrandbits(128)))
            upsert_profile(db, identity, _random_payload(rng, args.clustered))
            db.commit()

    print("Seed completed")
    print(f"- participants: {args.n_users}")
    print(f"- reset: {args.reset}")


if __name__ == "__main__":
    main()
