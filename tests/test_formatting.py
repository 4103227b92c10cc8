from ao_wallet_bot.utils.formatting import (
    escape_code,
    escape_markdown,
    format_help,
    format_wallet_card,
)


def test_escape_markdown_handles_specials():
    assert escape_markdown("1.5 AO (test)") == "1\\.5 AO \\(test\\)"
    assert escape_markdown(None) == ""
    assert escape_markdown(42) == "42"


def test_escape_code_only_touches_backticks():
    assert escape_code("a-b_c`d") == "a-b_c\\`d"


def test_wallet_card_new_and_returning():
    created = format_wallet_card("addr_1", created=True, name="Ann")
    returning = format_wallet_card("addr_1", created=False, name="Ann")

    assert "created" in created
    assert "Welcome back, Ann" in returning
    assert "`addr_1`" in created and "`addr_1`" in returning


def test_wallet_card_escapes_name():
    assert "J\\.R\\." in format_wallet_card("addr", name="J.R.")


def test_help_lists_commands():
    text = format_help()
    for command in ("/start", "/wallet", "/send", "/swap", "/holders", "/reset"):
        assert command in text
