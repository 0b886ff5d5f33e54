import time
from concurrent.futures import ThreadPoolExecutor

import pytest

pytest.importorskip("fastapi")

from conftest import ADMIN_HEADERS, answers_for, headers

from cupido.services.reveal import RevealNotifier, notifier, reveal_changes_since, set_reveal_enabled


@pytest.fixture
def pair_thread(client, submit):
    submit("alex", answers_for(creative=7), gender="m", preference="f", name="Alex Real")
    submit("bea", answers_for(creative=6, chill=1), gender="f", preference="m", name="Bea Real")
    resp = client.post("/chat/threads", headers=headers("alex"), json={"counterpart_id": "bea"})
    assert resp.status_code == 200
    thread = resp.json()["thread"]
    client.post(f"/chat/threads/{thread['thread_id']}/messages", headers=headers("alex"), json={"body": "hey"})
    return thread


def _toggle(client, enabled: bool):
    resp = client.post("/admin/reveal", headers=ADMIN_HEADERS, json={"reveal_enabled": enabled})
    assert resp.status_code == 200
    return resp.json()


def test_admin_endpoints_require_token(client):
    assert client.get("/admin/reveal").status_code == 401
    assert client.post("/admin/reveal", json={"reveal_enabled": True}).status_code == 401
    wrong = {"X-Admin-Token": "nope"}
    assert client.post("/admin/reveal", headers=wrong, json={"reveal_enabled": True}).status_code == 401
    state = client.get("/admin/reveal", headers=ADMIN_HEADERS).json()
    assert state["reveal_enabled"] is False
    assert state["version"] == 0


def test_reveal_flips_names_for_existing_messages(client, pair_thread):
    url = f"/chat/threads/{pair_thread['thread_id']}/messages"
    before = client.get(url, headers=headers("bea")).json()["messages"][0]
    assert before["sender_display_name"] == pair_thread["my_alias"]
    assert before["reveal_enabled"] is False

    on = _toggle(client, True)
    assert on["changed"] is True
    assert on["reveal_enabled"] is True
    assert on["version"] == 1
    assert on["toggled_at"] is not None

    after = client.get(url, headers=headers("bea")).json()["messages"][0]
    assert after["sender_display_name"] == "Alex Real"
    assert after["sender_alias"] == pair_thread["my_alias"]

    threads = client.get("/chat/threads", headers=headers("bea")).json()["threads"]
    assert threads[0]["other_display_name"] == "Alex Real"
    assert threads[0]["my_display_name"] == "Bea Real"
    assert threads[0]["revealed_at"] is not None

    off = _toggle(client, False)
    assert off["version"] == 2
    hidden = client.get(url, headers=headers("bea")).json()["messages"][0]
    assert hidden["sender_display_name"] == pair_thread["my_alias"]


def test_repeated_toggle_is_a_noop(client):
    assert _toggle(client, False)["changed"] is False
    assert _toggle(client, True)["version"] == 1
    again = _toggle(client, True)
    assert again["changed"] is False
    assert again["version"] == 1


def test_thread_created_while_revealed_is_stamped(client, submit):
    _toggle(client, True)
    submit("alex", answers_for(social=7), gender="m", preference="f")
    submit("bea", answers_for(social=7), gender="f", preference="m")
    thread = client.post("/chat/threads", headers=headers("alex"), json={"counterpart_id": "bea"}).json()["thread"]
    assert thread["revealed_at"] is not None
    assert thread["other_display_name"] == "Real bea"


def test_group_chat_follows_reveal_flag(client, submit):
    body = submit("alex", answers_for(intellectual=7), name="Alex Real")
    group = body["group"]
    url = f"/groups/threads/{group['group_thread_id']}/messages"
    client.post(url, headers=headers("alex"), json={"body": "anyone reading Camus?"})

    assert client.get(url, headers=headers("alex")).json()["messages"][0]["sender_display_name"] == group["my_alias"]
    _toggle(client, True)
    assert client.get(url, headers=headers("alex")).json()["messages"][0]["sender_display_name"] == "Alex Real"
    assert client.get("/groups/me", headers=headers("alex")).json()["group"]["my_display_name"] == "Alex Real"


def test_settings_endpoint_reports_changes(client):
    state = client.get("/settings/reveal").json()
    assert state == {"reveal_enabled": False, "toggled_at": None, "version": 0, "changed": False}

    _toggle(client, True)
    stale = client.get("/settings/reveal", params={"since_version": 0}).json()
    assert stale["changed"] is True
    assert stale["reveal_enabled"] is True

    current = client.get("/settings/reveal", params={"since_version": 1}).json()
    assert current["changed"] is False


def test_many_reveal_pollers_do_not_starve_other_routes(client, submit):
    submit("alex", answers_for(chill=7))
    pollers = 60

    with ThreadPoolExecutor(max_workers=pollers) as pool:
        polls = [pool.submit(client.get, "/settings/reveal", params={"since_version": 0}) for _ in range(pollers)]
        started = time.monotonic()
        threads = client.get("/chat/threads", headers=headers("alex"))
        elapsed = time.monotonic() - started
        results = [f.result(timeout=10) for f in polls]

    assert threads.status_code == 200
    assert elapsed < 2.0
    assert all(r.status_code == 200 and r.json()["changed"] is False for r in results)


def test_admin_toggle_reaches_subscribers(client):
    seen = []
    unsubscribe = notifier.subscribe(seen.append)
    try:
        _toggle(client, True)
        _toggle(client, True)
    finally:
        unsubscribe()
    assert [s["version"] for s in seen] == [1]
    assert seen[0]["reveal_enabled"] is True
    assert notifier.version == 1


def test_reveal_changes_since_is_a_plain_read(db):
    assert reveal_changes_since(db, None)["changed"] is False
    state, changed = set_reveal_enabled(db, True)
    db.commit()
    assert changed
    assert reveal_changes_since(db, 0) == {**state, "changed": True}
    assert reveal_changes_since(db, state["version"])["changed"] is False


def test_notifier_subscribers():
    n = RevealNotifier()
    seen = []

    def _boom(state):
        raise RuntimeError("subscriber bug")

    unsubscribe = n.subscribe(seen.append)
    n.subscribe(_boom)
    n.publish({"reveal_enabled": True, "version": 1})
    assert seen == [{"reveal_enabled": True, "version": 1}]
    assert n.version == 1

    unsubscribe()
    n.publish({"reveal_enabled": False, "version": 2})
    assert len(seen) == 1
    assert n.version == 2
