from datetime import datetime, timedelta, timezone

from tokenstore.domain.token import CLIToken, Token

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _local_string(moment: datetime) -> str:
    return datetime.fromtimestamp(moment.timestamp()).strftime("%Y-%m-%d %H:%M:%S.%f")


def test_token_expiry_helpers():
    token = Token(access_token="abc", expires_on=int((NOW + timedelta(minutes=10)).timestamp()))

    assert token.expires_at() == NOW + timedelta(minutes=10)
    assert token.is_expired(now=NOW) is False
    assert token.will_expire_in(timedelta(minutes=5), now=NOW) is False
    assert token.will_expire_in(timedelta(minutes=10), now=NOW) is True
    assert token.is_expired(now=NOW + timedelta(hours=1)) is True


def test_token_without_expiry_is_expired():
    token = Token(access_token="abc", expires_in=3600)

    assert token.expires_at() is None
    assert token.is_expired(now=NOW) is True


def test_token_json_round_trip():
    token = Token(
        access_token="abc",
        refresh_token="def",
        expires_in=3600,
        expires_on=1717243200,
        not_before=1717239600,
        resource="https://vault.azure.net",
        token_type="Bearer",
    )

    assert Token.model_validate_json(token.model_dump_json()) == token


def test_cli_token_accepts_aliases_and_names():
    by_alias = CLIToken.model_validate({"accessToken": "abc", "_clientId": "client", "isMRRT": True})
    by_name = CLIToken(access_token="abc", client_id="client", is_mrrt=True)

    assert by_alias == by_name
    assert by_alias.model_dump(by_alias=True)["_clientId"] == "client"


def test_cli_token_parses_local_expiry():
    expiry = NOW + timedelta(hours=1)
    entry = CLIToken(access_token="abc", expires_on=_local_string(expiry))

    assert entry.expires_at() == expiry
    assert entry.is_expired(now=NOW) is False
    assert entry.is_expired(now=NOW + timedelta(hours=2)) is True


def test_cli_token_parses_expiry_without_fraction():
    expiry = NOW + timedelta(hours=1)
    text = datetime.fromtimestamp(expiry.timestamp()).strftime("%Y-%m-%d %H:%M:%S")

    assert CLIToken(access_token="abc", expires_on=text).expires_at() == expiry


def test_cli_token_with_unparseable_expiry_is_expired():
    entry = CLIToken(access_token="abc", expires_on="tomorrow")

    assert entry.expires_at() is None
    assert entry.is_expired(now=NOW) is True


def test_cli_token_converts_to_token():
    expiry = NOW + timedelta(hours=1)
    entry = CLIToken(
        access_token="abc",
        refresh_token="def",
        expires_on=_local_string(expiry),
        resource="https://management.core.windows.net/",
        token_type="Bearer",
        user_id="someone@example.com",
    )

    token = entry.to_token()

    assert token == Token(
        access_token="abc",
        refresh_token="def",
        expires_on=int(expiry.timestamp()),
        resource="https://management.core.windows.net/",
        token_type="Bearer",
    )


def test_token_with_millisecond_expiry_counts_as_expired():
    token = Token(access_token="abc", expires_on=1717236000000)

    assert token.expires_at() is None
    assert token.is_expired(now=NOW) is True
    assert token.will_expire_in(timedelta(minutes=5), now=NOW) is True


def test_cli_token_refresh_window():
    entry = CLIToken(access_token="abc", expires_on=_local_string(NOW + timedelta(minutes=2)))

    assert entry.is_expired(now=NOW) is False
    assert entry.will_expire_in(timedelta(minutes=5), now=NOW) is True
    assert entry.will_expire_in(timedelta(minutes=1), now=NOW) is False
