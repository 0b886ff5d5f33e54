from ..errors import NotMutualTop3

NONE = "none"
ACTIVE = "active"


def transition_thread(current: str, action: str, is_mutual: bool) -> str:
    if current == ACTIVE:
        return ACTIVE

    if action == "create":
        if is_mutual:
            return ACTIVE
        raise NotMutualTop3()

    return current


def thread_state(existing_thread: dict | None) -> str:
    return ACTIVE if existing_thread else NONE
