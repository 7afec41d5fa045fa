from __future__ import annotations

import uuid
from datetime import timedelta

import jwt
import pytest

from network_chat.application.cursor import decode_cursor, encode_cursor
from network_chat.application.dto.principal import Principal
from network_chat.application.exceptions import (
    ForbiddenError,
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
)
from network_chat.application.policies.permissions import (
    assert_conversation_access,
    assert_request_access,
    assert_request_recipient,
)
from network_chat.application.policies.rules import (
    assert_group,
    assert_pending,
    validate_group_participants,
)
from network_chat.domain.timestamps import advance
from network_chat.domain.value_objects.enums import RequestDecision, RequestStatus
from network_chat.domain.value_objects.pair import pair_key
from network_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from tests.conftest import ALICE, BOB, CAROL, T0, make_conversation, make_request

SECRET = "unit-test-secret-that-is-long-enough"


def test_advance_takes_clock_when_it_moved():
    later = T0 + timedelta(seconds=1)
    assert advance(T0, later) == later


@pytest.mark.parametrize("now", [T0, T0 - timedelta(hours=1)])
def test_advance_bumps_one_tick_when_clock_did_not_move(now):
    assert advance(T0, now) == T0 + timedelta(microseconds=1)


def test_pair_key_is_order_independent():
    assert pair_key(7, 3) == pair_key(3, 7) == "3:7"


def test_pair_key_compares_numerically():
    assert pair_key(10, 9) == "9:10"


def test_cursor_roundtrip():
    uid = uuid.uuid4()
    assert decode_cursor(encode_cursor(T0, uid)) == (T0, uid)


@pytest.mark.parametrize("cursor", ["not-a-cursor", "", "Zm9v"])
def test_malformed_cursor_rejected(cursor):
    with pytest.raises(InvalidRequestError):
        decode_cursor(cursor)


def test_decision_maps_to_status():
    assert RequestDecision.ACCEPT.resulting_status == RequestStatus.ACCEPTED
    assert RequestDecision.REJECT.resulting_status == RequestStatus.REJECTED


def test_validate_group_participants_keeps_order():
    assert validate_group_participants(iter([3, 1, 2])) == (3, 1, 2)


def test_validate_group_participants_reports_duplicates_first():
    with pytest.raises(InvalidRequestError, match="duplicates"):
        validate_group_participants([ALICE, ALICE])


def test_assert_pending():
    assert_pending(make_request())
    with pytest.raises(InvalidTransitionError):
        assert_pending(make_request(status=RequestStatus.ACCEPTED))


def test_assert_group():
    assert_group(make_conversation(is_group=True))
    with pytest.raises(InvalidTransitionError):
        assert_group(make_conversation())


def test_conversation_access():
    conv = make_conversation(participants=(ALICE, BOB))
    assert assert_conversation_access(ALICE, conv) is conv
    with pytest.raises(ForbiddenError):
        assert_conversation_access(CAROL, conv)
    with pytest.raises(NotFoundError):
        assert_conversation_access(ALICE, None)


def test_request_access_and_recipient():
    req = make_request(from_user_id=ALICE, to_user_id=BOB)
    assert assert_request_access(ALICE, req) is req
    assert assert_request_recipient(BOB, req) is req
    with pytest.raises(ForbiddenError):
        assert_request_recipient(ALICE, req)
    with pytest.raises(ForbiddenError):
        assert_request_access(CAROL, req)
    with pytest.raises(NotFoundError):
        assert_request_recipient(BOB, None)


@pytest.mark.asyncio
@pytest.mark.parametrize("claim", ["sub", "id", "userId"])
async def test_verifier_reads_user_id_claims(claim):
    verifier = HS256Verifier(SECRET)
    token = jwt.encode({claim: "42"}, SECRET, algorithm="HS256")

    principal = await verifier.verify(token)

    assert principal == Principal(user_id=42)


@pytest.mark.asyncio
async def test_verifier_rejects_token_without_user_id():
    verifier = HS256Verifier(SECRET)
    token = jwt.encode({"name": "alice"}, SECRET, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify(token)


@pytest.mark.asyncio
async def test_verifier_rejects_bad_signature():
    verifier = HS256Verifier(SECRET)
    token = jwt.encode({"sub": "42"}, "x" * 40, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await verifier.verify(token)
