import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from roomie import models  # noqa: F401
from roomie.database import Base
from roomie.profiles import ChatMessage, Profile, Report, pair_key
from roomie.repo import SqlMatchStore
from roomie.services.conversations import list_conversations, send_direct_message
from roomie.services.messaging_gate import MessagingGate
from roomie.services.reciprocity import ReciprocityLedger


@pytest.fixture
def store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'roomie.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield SqlMatchStore(session_factory=factory)
    engine.dispose()


def test_profile_roundtrip_keeps_optional_fields(store):
    store.put_profile(
        Profile(
            id="a",
            gender="female",
            gender_preference=["any"],
            neighborhoods=["Mission"],
            preferences={"budget": 40, "smoking": None},
            open_to_non_matches=True,
            subscription_tier="premium",
        )
    )
    profile = store.get_profile("a")
    assert profile.gender_preference == ["any"]
    assert profile.neighborhoods == ["Mission"]
    assert profile.preferences == {"budget": 40, "smoking": None}
    assert profile.open_to_non_matches is True
    assert profile.subscription_tier == "premium"
    assert store.get_profile("missing") is None


def test_profile_update_keeps_message_counter(store):
    store.put_profile(Profile(id="a", preferences=None))
    store.increment_direct_message_count("a")
    store.put_profile(Profile(id="a", preferences={"budget": 10}, display_name="Ana"))
    profile = store.get_profile("a")
    assert profile.direct_messages_sent == 1
    assert profile.display_name == "Ana"


def test_list_profiles_excludes_viewer_and_incomplete(store):
    store.put_profile(Profile(id="a", preferences={}))
    store.put_profile(Profile(id="b", preferences={}))
    store.put_profile(Profile(id="c", preferences={}, profile_complete=False))
    assert [p.id for p in store.list_profiles(exclude_user_id="a")] == ["b"]
    assert [p.id for p in store.list_profiles()] == ["a", "b"]


def test_mutual_like_creates_one_match_row(store):
    ledger = ReciprocityLedger(store)
    assert ledger.record_like("a", "b").is_match is False
    assert ledger.record_like("b", "a").is_match is True
    assert ledger.record_like("b", "a").is_match is True
    store.put_match("a_b", "b", "a")

    matches = ledger.get_matches("a")
    assert len(matches) == 1
    assert (matches[0].user_id_1, matches[0].user_id_2) == ("a", "b")
    assert ledger.is_matched("b", "a") is True
    assert len(store.get_likes("b")) == 1


def test_passes_and_blocks_are_idempotent(store):
    store.put_pass("a", "b")
    store.put_pass("a", "b")
    assert [(p.passer_id, p.passed_id) for p in store.get_passes("a")] == [("a", "b")]
    assert store.has_pass("a", "b") is True

    store.put_block("b", "a")
    store.put_block("b", "a")
    assert store.is_blocked_pair("a", "b") is True
    store.put_block("c", "a")
    store.put_block("d", "e")
    assert store.get_blocked_ids("a") == {"b", "c"}
    assert store.get_blocked_ids("e") == {"d"}
    assert store.get_blocked_ids("z") == set()


def test_send_and_list_conversations(store):
    store.put_profile(Profile(id="a", preferences={}))
    store.put_profile(Profile(id="b", preferences={}, open_to_non_matches=True))
    gate = MessagingGate(store)

    result = send_direct_message(store, gate, "a", "b", "hello")
    assert result.counted is True
    assert store.get_profile("a").direct_messages_sent == 1
    assert [m.body for m in store.get_messages("a_b")] == ["hello"]
    assert isinstance(store.get_messages("a_b")[0], ChatMessage)

    conversations = list_conversations(store, "b")
    assert conversations["matches"] == []
    assert [c["user_id"] for c in conversations["direct_messages"]] == ["a"]


def test_profile_update_keeps_subscription_tier(store):
    store.put_profile(Profile(id="a", preferences={}, subscription_tier="free"))
    store.put_profile(Profile(id="a", preferences={}, subscription_tier="premium"))
    assert store.get_profile("a").subscription_tier == "free"


def test_increment_with_limit_is_conditional(store):
    store.put_profile(Profile(id="a", preferences={}))
    assert store.increment_direct_message_count("a", limit=1) is True
    assert store.increment_direct_message_count("a", limit=1) is False
    assert store.get_profile("a").direct_messages_sent == 1
    assert store.increment_direct_message_count("a") is True
    assert store.get_profile("a").direct_messages_sent == 2
    assert store.increment_direct_message_count("missing") is False


def test_separator_in_ids_does_not_merge_matches(store):
    ledger = ReciprocityLedger(store)
    ledger.record_like("a_b", "c")
    ledger.record_like("c", "a_b")
    ledger.record_like("a", "b_c")
    assert ledger.is_matched("a", "b_c") is False

    assert ledger.record_like("b_c", "a").is_match is True
    assert [m.other("a") for m in ledger.get_matches("a")] == ["b_c"]
    assert ledger.is_matched("a", "b_c") is True
    assert store.get_match(pair_key("a_b", "c")) is not None


def test_reports_are_stored(store):
    store.put_report(Report(id="r1", reporter_id="a", reported_id="b", reason="spam", context="message", details="links"))
    store.put_report(Report(id="r2", reporter_id="c", reported_id="b", reason="No reason provided", context="match"))
    reports = store.get_reports("b")
    assert {r.id for r in reports} == {"r1", "r2"}
    assert next(r for r in reports if r.id == "r1").details == "links"
    assert store.get_reports("a") == []
