import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from cupido.database import SessionLocal
from cupido.services.reveal import get_reveal_state, set_reveal_enabled


def main() -> None:
    parser = argparse.ArgumentParser(description="Show or toggle the global identity reveal flag")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--on", action="store_true", help="reveal real names in every chat")
    group.add_argument("--off", action="store_true", help="go back to aliases")
    args = parser.parse_args()

    with SessionLocal() as db:
        if args.on or args.off:
            state, changed = set_reveal_enabled(db, enabled=args.on)
            db.commit()
        else:
            state, changed = get_reveal_state(db), False

    print(f"reveal_enabled={state['reveal_enabled']} version={state['version']} changed={changed}")


if __name__ == "__main__":
    main()
