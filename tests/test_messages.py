from src.voting.messages import (
    COMPANY_CAP_MESSAGES,
    OUT_OF_TOKENS_MESSAGES,
    limit_message,
    pick_message,
    success_message,
)


def test_pick_message_is_deterministic():
    assert pick_message(OUT_OF_TOKENS_MESSAGES, "NBK0007:2025-06-15") == pick_message(
        OUT_OF_TOKENS_MESSAGES, "NBK0007:2025-06-15"
    )


def test_limit_message_pools_and_caps():
    daily = limit_message("DAILY_LIMIT", "seed", 3)
    company = limit_message("COMPANY_MONTHLY_LIMIT", "seed", 30)
    assert daily in [m.format(cap=3) for m in OUT_OF_TOKENS_MESSAGES]
    assert company in [m.format(cap=30) for m in COMPANY_CAP_MESSAGES]
    assert "{cap}" not in daily


def test_success_message_pluralization():
    one = success_message("token", "Cora", "NBK0012", 1, 1)
    assert "1 token left today" in one
    assert "1 token left this month" in one

    none = success_message("token", "", "NBK0012", 0, 29)
    assert "NBK0012 (NBK0012)" in none
    assert "0 tokens left today" in none
