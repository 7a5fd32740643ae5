"""User-facing copy for vote outcomes."""
import random

OUT_OF_TOKENS_MESSAGES = [
    "🎉 You’ve given out all {cap} of your shiny virtual tokens today. Don’t worry, your stash magically refills at midnight!",
    "🦺 All {cap} tokens poured today. Concrete’s gotta set. Fresh load arrives tomorrow.",
    "🔨 You swung the hammer {cap} times today and nailed your task of giving out tokens. Tool’s cooling down, pick it up again tomorrow.",
    "✨ The Token Dozer Driver says you’ve been too nice today. {cap}/{cap} tokens given. More will be delivered overnight!",
    "🔥 Whoa there, this ain't no ATM! {cap}/{cap} token withdrawals used. Token Machine is cooling down overnight, back online tomorrow!",
    "😅 You’ve already been too nice today! {cap}/{cap} tokens given. HR says you’re cut off until tomorrow!",
    "⚡ Breaker tripped: {cap} tokens used. Reset overnight, power’s back in the morning.",
    "🧰 You’ve emptied your {cap} token toolbox. Re-stock comes with tomorrow’s sunrise!",
    "📦 All shipments sent: {cap} tokens delivered. Next truckload arrives tomorrow.",
    "💸 Wallet’s empty: {cap} tokens spent. Next payday is tomorrow.",
]

COMPANY_CAP_MESSAGES = [
    "🏢 Company cap reached: {cap} tokens this month. New load drops next month.",
    "🚧 Yard’s empty. Your company used all {cap} tokens for this month. Fresh shipment next month.",
    "🏗 Company gave {cap} tokens already this month. New pallet arrives next month.",
    "🔩 Company token bin is empty ({cap}/{cap}). Refill when the calendar flips.",
    "📦 All {cap} monthly tokens shipped. Next truck rolls in next month.",
    "🛠️ Company toolbox is out of tokens ({cap}/{cap}). Restock next month.",
]

REJECTION_MESSAGES = {
    "INVALID_BODY": "Invalid body",
    "MISSING_CODES": "Missing codes",
    "SELF_VOTE": "No self voting",
    "VOTER_UNREGISTERED": "Voter not registered",
    "TARGET_UNREGISTERED": "Target not registered",
    "DIFF_PROJECT": "Same-project only (NBK→NBK, JP→JP)",
    "SAME_COMPANY": "No same-company voting",
    "GC_WALSH_ONLY": "Good Catch is Walsh-only",
    "DAILY_LIMIT": "Daily limit reached",
    "COMPANY_MONTHLY_LIMIT": "Company monthly limit reached",
    "VOTE_FAILED": "Vote failed",
}


def pick_message(pool, seed) -> str:
    """Deterministic choice from ``pool``; the same seed gives the same line."""
    return random.Random(str(seed)).choice(pool)


def limit_message(reason: str, seed, cap: int) -> str:
    """Playful copy for a quota rejection, stable for a given seed."""
    pool = COMPANY_CAP_MESSAGES if reason == "COMPANY_MONTHLY_LIMIT" else OUT_OF_TOKENS_MESSAGES
    return pick_message(pool, seed).format(cap=cap)


def _tokens(n: int) -> str:
    return f"{n} token{'' if n == 1 else 's'}"


def success_message(vote_type: str, target_name: str, target_code: str,
                    daily_remaining: int, company_remaining: int) -> str:
    who = f"{target_name or target_code} ({target_code})"
    if vote_type == "goodCatch":
        return (
            f"Good Catch for {who} recorded. "
            f"Good Catches don’t count against daily or monthly token limits. "
            f"You still have {_tokens(daily_remaining)} left today. "
            f"Your company still has {_tokens(company_remaining)} left this month."
        )
    return (
        f"Your virtual token has been given to {who}. "
        f"You have {_tokens(daily_remaining)} left today. "
        f"Your company has {_tokens(company_remaining)} left this month."
    )


def notification_copy(vote_type: str):
    """(title, body) for the target's inbox."""
    if vote_type == "goodCatch":
        return "You received a Good Catch!", "Someone recognized your Good Catch."
    return "You received a Token!", "Someone gave you a virtual token."
