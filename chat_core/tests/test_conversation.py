import pytest

from chat_core.domain.exceptions import ConsistencyError
from chat_core.domain.models import Message, MessageRole, MessageState
from chat_core.infrastructure.storage.memory_store import InMemoryConversationStore


def test_models_exist():
    m = Message(id="m1", role=MessageRole.USER, content="hi")
    assert m.role is MessageRole.USER
    assert m.is_loading is False
    assert m.state is MessageState.COMPLETE


def test_append_user_and_pending_assistant():
    store = InMemoryConversationStore(placeholder_text="▋")
    uid = store.append_user("hi")
    aid = store.append_pending_assistant()
    msgs = store.snapshot()
    assert [m.id for m in msgs] == [uid, aid]
    assert msgs[0].role is MessageRole.USER
    assert msgs[0].content == "hi"
    assert msgs[0].is_loading is False
    assert msgs[1].role is MessageRole.ASSISTANT
    assert msgs[1].content == "▋"
    assert msgs[1].is_loading is True
    assert msgs[1].state is MessageState.PENDING


def test_ids_are_unique():
    store = InMemoryConversationStore()
    ids = []
    for i in range(50):
        ids.append(store.append_user(f"u{i}"))
        ids.append(store.append_pending_assistant())
    assert len(set(ids)) == len(ids)


def test_first_fragment_replaces_placeholder_then_appends():
    store = InMemoryConversationStore(placeholder_text="...")
    store.append_user("hi")
    aid = store.append_pending_assistant()
    store.apply_fragment(aid, "H")
    msg = store.get(aid)
    assert msg.content == "H"
    assert msg.is_loading is False
    store.apply_fragment(aid, "ello")
    store.apply_fragment(aid, "!")
    assert store.get(aid).content == "Hello!"
    assert store.get(aid).state is MessageState.STREAMING


def test_empty_first_fragment_still_clears_placeholder():
    store = InMemoryConversationStore(placeholder_text="▋")
    aid = store.append_pending_assistant()
    store.apply_fragment(aid, "")
    assert store.get(aid).content == ""
    assert store.get(aid).is_loading is False


def test_fragment_does_not_touch_other_messages():
    store = InMemoryConversationStore()
    u1 = store.append_user("one")
    a1 = store.append_pending_assistant()
    u2 = store.append_user("two")
    a2 = store.append_pending_assistant()
    before = {m.id: m.content for m in store.snapshot()}
    store.apply_fragment(a1, "reply")
    store.apply_error(a2, "boom")
    after = {m.id: m.content for m in store.snapshot()}
    assert after[u1] == before[u1]
    assert after[u2] == before[u2]
    assert after[a1] == "reply"
    assert after[a2] == "boom"


def test_apply_error_is_terminal():
    store = InMemoryConversationStore()
    aid = store.append_pending_assistant()
    store.apply_fragment(aid, "partial")
    store.apply_error(aid, "Error generating response. Please try again.")
    msg = store.get(aid)
    assert msg.content == "Error generating response. Please try again."
    assert msg.is_loading is False
    assert msg.state is MessageState.FAILED
    with pytest.raises(ConsistencyError):
        store.apply_fragment(aid, "late")


def test_unknown_or_user_ids_raise_consistency_error():
    store = InMemoryConversationStore()
    uid = store.append_user("hi")
    with pytest.raises(ConsistencyError) as exc:
        store.apply_fragment("m-missing", "x")
    assert exc.value.code == "MESSAGE_NOT_FOUND"
    with pytest.raises(ConsistencyError) as exc:
        store.apply_fragment(uid, "x")
    assert exc.value.code == "NOT_ASSISTANT_MESSAGE"
    with pytest.raises(ConsistencyError):
        store.apply_error("m-missing", "x")
    assert store.get(uid).content == "hi"


def test_complete_without_fragments_clears_placeholder():
    store = InMemoryConversationStore(placeholder_text="▋")
    aid = store.append_pending_assistant()
    store.complete(aid)
    msg = store.get(aid)
    assert msg.content == ""
    assert msg.is_loading is False
    assert msg.state is MessageState.COMPLETE


def test_complete_keeps_streamed_content_and_failed_state():
    store = InMemoryConversationStore()
    a1 = store.append_pending_assistant()
    store.apply_fragment(a1, "done")
    store.complete(a1)
    store.complete(a1)
    assert store.get(a1).content == "done"

    a2 = store.append_pending_assistant()
    store.apply_error(a2, "err")
    store.complete(a2)
    assert store.get(a2).state is MessageState.FAILED
    assert store.get(a2).content == "err"


def test_snapshot_returns_copies():
    store = InMemoryConversationStore()
    uid = store.append_user("hi")
    snap = store.snapshot()
    snap[0].content = "changed"
    snap.append(Message(id="x", role=MessageRole.USER, content="x"))
    assert store.get(uid).content == "hi"
    assert len(store) == 1


def test_listeners_see_each_mutation_synchronously():
    store = InMemoryConversationStore(placeholder_text="▋")
    seen = []
    unsubscribe = store.subscribe(lambda e: seen.append((e.kind, e.message.content, e.message.is_loading)))
    store.append_user("hi")
    aid = store.append_pending_assistant()
    store.apply_fragment(aid, "a")
    assert seen == [("appended", "hi", False), ("appended", "▋", True), ("updated", "a", False)]
    unsubscribe()
    store.apply_fragment(aid, "b")
    assert len(seen) == 3


def test_failing_listener_does_not_break_mutation():
    store = InMemoryConversationStore()

    def broken(_event):
        raise RuntimeError("render failed")

    store.subscribe(broken)
    aid = store.append_pending_assistant()
    store.apply_fragment(aid, "ok")
    assert store.get(aid).content == "ok"
