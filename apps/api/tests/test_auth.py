from hod.core import create_access_token, decode_access_token


def test_token_round_trips_the_user_id():
    assert decode_access_token(create_access_token("user-1")) == "user-1"


def test_expired_or_tampered_tokens_are_rejected():
    assert decode_access_token(create_access_token("user-1", expire_minutes=-1)) is None
    token = create_access_token("user-1")
    assert decode_access_token(token.rsplit(".", 1)[0] + ".bad-signature") is None
    assert decode_access_token("not-a-token") is None
