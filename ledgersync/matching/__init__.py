"""Account matching module exports."""

from ledgersync.matching.config import MatcherConfig
from ledgersync.matching.matcher import AccountMatch, AccountMatcher, select_account

__all__ = ["MatcherConfig", "AccountMatch", "AccountMatcher", "select_account"]
