import pytest
from sqlalchemy import text

pytest.importorskip("fastapi")

from conftest import answers_for, headers

from cupido.database import SessionLocal
from cupido.services.aliases import make_alias
from cupido.services.groups import TRIBES, assign_group, ensure_tribes, list_my_group, tribe_id, tribe_thread_id


def _my_group(client, identity: str):
    resp = client.get("/groups/me", headers=headers(identity))
    assert resp.status_code == 200
    return resp.json()["group"]


def test_tribes_are_seeded_idempotently(db):
    assert ensure_tribes(db) == len(TRIBES)
    db.commit()
    count = db.execute(text("SELECT COUNT(1) FROM tribe_group")).scalar()
    assert count == 7


def test_dominant_category_picks_the_tribe(client, submit):
    submit("alex", answers_for(social=3, adventurous=3, chill=1))
    group = _my_group(client, "alex")
    assert group["group_key"] == "adventurous"
    assert group["group_label"] == "The Adventurers"
    assert group["group_thread_id"] == tribe_thread_id("adventurous")
    assert group["member_count"] == 1
    assert group["reveal_enabled"] is False
    assert group["my_display_name"] == group["my_alias"]


def test_member_count_and_shared_thread(client, submit):
    submit("alex", answers_for(romantic=7), gender="m", preference="f")
    submit("bea", answers_for(romantic=5, chill=2), gender="f", preference="m")
    submit("cara", answers_for(chill=7), gender="f", preference="m")

    alex = _my_group(client, "alex")
    bea = _my_group(client, "bea")
    assert alex["group_thread_id"] == bea["group_thread_id"]
    assert alex["member_count"] == 2
    assert alex["my_alias"] != bea["my_alias"]
    assert _my_group(client, "cara")["group_key"] == "chill"

    url = f"/groups/threads/{alex['group_thread_id']}/messages"
    sent = client.post(url, headers=headers("alex"), json={"body": "hello romantics"})
    assert sent.status_code == 200
    assert sent.json()["message"]["sender_alias"] == alex["my_alias"]

    seen = client.get(url, headers=headers("bea")).json()["messages"]
    assert len(seen) == 1
    assert seen[0]["is_mine"] is False
    assert seen[0]["sender_display_name"] == alex["my_alias"]

    outsider = client.get(url, headers=headers("cara"))
    assert outsider.status_code == 403
    assert outsider.json()["code"] == "THREAD_NOT_ACCESSIBLE"


def test_participant_without_group(client):
    assert _my_group(client, "ghost") is None
    resp = client.get(f"/groups/threads/{tribe_thread_id('chill')}/messages", headers=headers("ghost"))
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_IN_GROUP"
    resp = client.post(
        f"/groups/threads/{tribe_thread_id('chill')}/messages", headers=headers("ghost"), json={"body": "hi"}
    )
    assert resp.json()["code"] == "NOT_IN_GROUP"


def test_group_transfer_keeps_old_messages(client, submit):
    submit("alex", answers_for(romantic=7))
    submit("bea", answers_for(romantic=7), gender="f", preference="m")
    old = _my_group(client, "alex")
    old_url = f"/groups/threads/{old['group_thread_id']}/messages"
    client.post(old_url, headers=headers("alex"), json={"body": "bye romantics"})

    submit("alex", answers_for(ambitious=7))
    new = _my_group(client, "alex")
    assert new["group_key"] == "ambitious"
    assert new["group_thread_id"] != old["group_thread_id"]

    assert client.get(old_url, headers=headers("alex")).status_code == 403
    kept = client.get(old_url, headers=headers("bea")).json()["messages"]
    assert [m["body"] for m in kept] == ["bye romantics"]
    assert kept[0]["sender_alias"] == old["my_alias"]
    assert _my_group(client, "bea")["member_count"] == 1


def test_same_tribe_resubmission_keeps_membership(client, submit):
    submit("alex", answers_for(creative=7))
    first = _my_group(client, "alex")
    submit("alex", answers_for(creative=4, chill=3))
    assert _my_group(client, "alex") == first


def test_zero_vector_clears_membership(db, submit):
    submit("alex", answers_for(chill=7))
    assert assign_group(db, "alex", [0] * 7) is None
    db.commit()
    with SessionLocal() as fresh:
        assert list_my_group(fresh, "alex") is None


def test_invalid_group_message_body(client, submit):
    group = submit("alex", answers_for(social=7))["group"]
    url = f"/groups/threads/{group['group_thread_id']}/messages"
    assert client.post(url, headers=headers("alex"), json={"body": " "}).status_code == 400
    assert client.get(url, headers=headers("alex")).json()["messages"] == []


def test_alias_is_unique_within_a_tribe(client, db, submit):
    thread_id = tribe_thread_id("chill")
    squatted = make_alias(thread_id, "alex")
    db.execute(
        text(
            """
            INSERT INTO group_membership (identity, group_id, group_thread_id, alias, joined_at)
            VALUES (:identity, :group_id, :thread_id, :alias, CURRENT_TIMESTAMP)
            """
        ),
        {"identity": "early-bird", "group_id": tribe_id("chill"), "thread_id": thread_id, "alias": squatted},
    )
    db.commit()

    group = submit("alex", answers_for(chill=7))["group"]
    assert group["group_key"] == "chill"
    assert group["member_count"] == 2
    assert group["my_alias"] != squatted
