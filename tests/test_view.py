import pytest

from valtrust.dashboard.view import (
    ValidatorRef,
    build_share_url,
    display_label,
    fmt_pct,
    fmt_sol,
    get_param,
    resolve_validator,
    short_key,
    sparkline,
)

DEFAULT_VOTE = "DefaultVote1111111111111111111111111111111"


def test_get_param_reads_query_then_fragment():
    assert get_param("https://x.example/?vote=Q#vote=F", "vote") == "Q"
    assert get_param("https://x.example/#vote=F&name=Bob", "name") == "Bob"
    assert get_param("https://x.example/", "vote") is None
    assert get_param("", "vote") is None


def test_resolve_validator_from_url_and_overrides():
    ref = resolve_validator(DEFAULT_VOTE, "Default", url="https://x.example/?vote=Abc&name=%20Zed%20")
    assert ref == ValidatorRef(vote="Abc", name="Zed", vote_from_url="Abc", name_from_url="Zed")

    ref = resolve_validator(DEFAULT_VOTE, "Default", url="https://x.example/?vote=Abc", vote="Explicit")
    assert ref.vote == "Explicit"

    ref = resolve_validator(DEFAULT_VOTE, "Default", url="https://x.example/?vote=%20%20")
    assert ref.vote == DEFAULT_VOTE
    assert ref.name == "Default"
    assert ref.vote_from_url is None


def test_short_key_and_display_label():
    assert short_key(None) == "—"
    assert short_key("short") == "short"
    assert short_key("ABCDEFGHIJKLMNOP") == "ABCD…MNOP"

    ref = ValidatorRef(vote=DEFAULT_VOTE, name="Default")
    assert display_label(ref) == "vote Defa…1111"
    assert display_label(ref, "NodeABCDEFGHIJKL") == "node Node…IJKL"
    assert display_label(ValidatorRef(vote="v", name="n", name_from_url="Alice"), "Node") == "Alice"


def test_share_url_uses_query_or_fragment():
    ref = ValidatorRef(vote="Abc", name="Zed", vote_from_url="Abc", name_from_url="Zed")

    assert build_share_url("https://dash.example/app?old=1#x", ref) == "https://dash.example/app?vote=Abc&name=Zed"
    assert build_share_url("https://me.github.io/dash/", ref) == "https://me.github.io/dash/#vote=Abc&name=Zed"

    plain = ValidatorRef(vote="Abc", name="Default")
    assert build_share_url("https://dash.example/", plain) == "https://dash.example/?vote=Abc"


@pytest.mark.parametrize(
    "value, expected",
    [(7.123, "7.12%"), ("6.5", "6.50%"), (None, "—%"), (float("nan"), "—%")],
)
def test_fmt_pct(value, expected):
    assert fmt_pct(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(1500.5, "1500"), (999.999, "1000.00"), (12.3456, "12.35"), (None, "—")],
)
def test_fmt_sol(value, expected):
    assert fmt_sol(value) == expected


def test_sparkline_scales_and_handles_flat_series():
    assert sparkline([]) == ""
    assert sparkline([0, 7]) == "▁█"
    assert sparkline([5, 5, 5]) == "▁▁▁"
    assert len(sparkline([1, None, 3])) == 2
