from __future__ import annotations

import pytest
from pydantic import ValidationError

from tmi_client.config import Capability, ClientConfig
from tmi_client.constants import INTAKE_QUEUE_DEPTH, TMI_WEBSOCKET_URL
from tmi_client.rate.categories import PrivilegeTier, RateLimitCategory
from tmi_client.rate.limits import BucketSpec, RateLimiterConfig, TierLimits


def test_defaults():
    config = ClientConfig(username="TestBot", token="abc")
    assert config.username == "testbot"
    assert config.token == "oauth:abc"
    assert config.url == TMI_WEBSOCKET_URL
    assert config.capabilities == [
        Capability.TAGS,
        Capability.COMMANDS,
        Capability.MEMBERSHIP,
    ]
    assert config.required_capabilities == []
    assert config.intake_queue_depth == INTAKE_QUEUE_DEPTH
    assert config.send_timeout is None
    assert config.dedup_messages is False


@pytest.mark.parametrize("token", ["oauth:abc", "OAUTH:abc", "  abc  "])
def test_token_normalization(token):
    assert ClientConfig(username="bot", token=token).token == "oauth:abc"


@pytest.mark.parametrize("token", ["", "oauth:", "a b"])
def test_invalid_token(token):
    with pytest.raises(ValidationError):
        ClientConfig(username="bot", token=token)


@pytest.mark.parametrize("username", ["", "two words", "x" * 26])
def test_invalid_username(username):
    with pytest.raises(ValidationError):
        ClientConfig(username=username, token="abc")


def test_token_hidden_from_repr():
    assert "abc" not in repr(ClientConfig(username="bot", token="abc"))


def test_required_capabilities_must_be_requested():
    with pytest.raises(ValidationError) as exc_info:
        ClientConfig(
            username="bot",
            token="abc",
            capabilities=["twitch.tv/tags"],
            required_capabilities=["twitch.tv/commands"],
        )
    assert "twitch.tv/commands" in str(exc_info.value)


def test_capabilities_are_deduplicated():
    config = ClientConfig(
        username="bot", token="abc", capabilities=["twitch.tv/tags", "twitch.tv/tags"]
    )
    assert config.capabilities == [Capability.TAGS]


def test_numeric_bounds():
    with pytest.raises(ValidationError):
        ClientConfig(username="bot", token="abc", intake_queue_depth=0)
    with pytest.raises(ValidationError):
        ClientConfig(username="bot", token="abc", handshake_timeout=0)


def test_default_rate_limits_follow_twitch_documentation():
    limits = RateLimiterConfig()
    unprivileged = limits.spec_for(RateLimitCategory.MESSAGE, PrivilegeTier.UNPRIVILEGED)
    moderator = limits.spec_for(RateLimitCategory.MESSAGE, PrivilegeTier.MODERATOR)
    join = limits.spec_for(RateLimitCategory.JOIN, PrivilegeTier.BROADCASTER)
    whisper = limits.spec_for(RateLimitCategory.WHISPER, PrivilegeTier.UNPRIVILEGED)
    assert (unprivileged.capacity, unprivileged.refill_rate) == (20, pytest.approx(20 / 30))
    assert (moderator.capacity, moderator.refill_rate) == (100, pytest.approx(100 / 30))
    assert (join.capacity, join.refill_rate) == (20, pytest.approx(2.0))
    assert (whisper.capacity, whisper.refill_rate) == (3, pytest.approx(3.0))
    with pytest.raises(ValueError):
        limits.spec_for(RateLimitCategory.UNLIMITED, PrivilegeTier.UNPRIVILEGED)


def test_bucket_spec_validation():
    with pytest.raises(ValidationError):
        BucketSpec(capacity=0, refill_rate=1)
    with pytest.raises(ValidationError):
        BucketSpec(capacity=1, refill_rate=0)


def test_rate_limits_override():
    config = ClientConfig(
        username="bot",
        token="abc",
        rate_limits={"whisper": TierLimits.uniform(BucketSpec(capacity=1, refill_rate=5))},
    )
    spec = config.rate_limits.spec_for(RateLimitCategory.WHISPER, PrivilegeTier.MODERATOR)
    assert spec == BucketSpec(capacity=1, refill_rate=5)


def test_custom_capability_names_are_accepted():
    config = ClientConfig(
        username="bot",
        token="abc",
        capabilities=["twitch.tv/tags", "twitch.tv/tags-extended", " twitch.tv/commands "],
        required_capabilities=["twitch.tv/tags-extended"],
    )
    assert config.capabilities == [
        Capability.TAGS,
        "twitch.tv/tags-extended",
        Capability.COMMANDS,
    ]
    assert isinstance(config.capabilities[0], Capability)
    assert isinstance(config.capabilities[2], Capability)
    assert config.required_capabilities == ["twitch.tv/tags-extended"]


@pytest.mark.parametrize("name", ["", "   ", "twitch.tv/tags twitch.tv/commands"])
def test_invalid_capability_names_rejected(name):
    with pytest.raises(ValidationError):
        ClientConfig(username="bot", token="abc", capabilities=[name])
