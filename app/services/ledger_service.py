"""
app/services/ledger_service.py

Purpose: Credit accounting rules

- Registration with the initial grant (exactly once per user id)
- Referral payouts tied to a registration event
- Debit-before-lookup with refund on failure
- Admin credit grants
"""

from typing import List, Optional, Tuple

from app.core.exceptions import (
    AccountNotFoundError,
    InsufficientCreditsError,
    InvalidInputError,
)
from app.core.logging import get_logger, LogContext
from app.models.user import Account, UserProfile
from utils.validation_utils import parse_int

logger = get_logger(__name__)

LOOKUP_COST = 1


class CreditLedger:
    """
    Accounting rules over an account store.
    
    Each public mutation maps to exactly one atomic store operation, so the
    store is the only synchronization point between concurrent updates.
    """
    
    def __init__(self, store, initial_credits: int, referral_credit: int):
        self.store = store
        self.initial_credits = initial_credits
        self.referral_credit = referral_credit
    
    async def get_account(self, user_id: int) -> Optional[Account]:
        doc = await self.store.find(user_id)
        return Account.from_document(doc) if doc else None
    
    async def register_if_absent(self, profile: UserProfile) -> Tuple[Account, bool]:
        """
        Creates the account on first contact.
        
        Returns:
            (account, is_new). When two registrations race, only one insert
            wins and the other returns the stored account with is_new=False.
        """
        with LogContext(user_id=profile.id):
            existing = await self.get_account(profile.id)
            if existing:
                return existing, False
            
            account = Account.new(profile, self.initial_credits)
            if await self.store.insert(account.to_document()):
                logger.info(f"Registered new account with {self.initial_credits} credits")
                return account, True
            
            stored = await self.get_account(profile.id)
            if stored is None:
                raise AccountNotFoundError(f"Account {profile.id} vanished during registration")
            return stored, False
    
    async def register_with_referral(
        self,
        profile: UserProfile,
        payload: Optional[str]
    ) -> Tuple[Account, bool, Optional[Account]]:
        """
        Registers the user and pays the referrer named in the start payload.
        
        The payout only happens when this call created the account, so a
        repeated /start can never pay twice.
        
        Returns:
            (account, is_new, referrer account after payout or None)
        """
        account, is_new = await self.register_if_absent(profile)
        if not is_new:
            return account, False, None
        
        referrer_id = parse_referrer_id(payload)
        if referrer_id is None or referrer_id == profile.id:
            return account, True, None
        
        referrer = await self.grant_referral(referrer_id, self.referral_credit)
        return account, True, referrer
    
    async def grant_referral(self, referrer_id: int, amount: int) -> Optional[Account]:
        """
        Pays a referral reward.
        
        Returns:
            The referrer account after payout, or None if it does not exist
        """
        doc = await self.store.increment(
            referrer_id,
            {"credits": amount, "referrals": 1, "credits_earned": amount}
        )
        if doc is None:
            logger.warning(f"Referrer {referrer_id} not found, no payout")
            return None
        
        logger.info(f"Referral payout of {amount} to {referrer_id}")
        return Account.from_document(doc)
    
    async def admin_grant(self, target_id: int, amount: int) -> Account:
        if amount <= 0:
            raise InvalidInputError("Amount must be a positive number")
        
        doc = await self.store.increment(target_id, {"credits": amount})
        if doc is None:
            raise AccountNotFoundError(f"User {target_id} not found")
        
        logger.info(f"Admin grant of {amount} credits to {target_id}")
        return Account.from_document(doc)
    
    async def try_debit_for_lookup(self, user_id: int) -> Account:
        """
        Reserves one credit for a lookup.
        
        The balance check and the decrement are a single conditional update,
        so two concurrent lookups against a balance of 1 cannot both pass.
        
        Raises:
            InsufficientCreditsError: balance below the lookup cost (or no account)
        """
        doc = await self.store.increment(
            user_id,
            {"credits": -LOOKUP_COST, "searches": 1},
            minimums={"credits": LOOKUP_COST}
        )
        if doc is None:
            raise InsufficientCreditsError()
        
        logger.debug(f"Debited {LOOKUP_COST} credit from {user_id}")
        return Account.from_document(doc)
    
    async def refund_lookup(self, user_id: int) -> Account:
        """Reverses one successful debit."""
        doc = await self.store.increment(
            user_id,
            {"credits": LOOKUP_COST, "searches": -1}
        )
        if doc is None:
            raise AccountNotFoundError(f"User {user_id} not found for refund")
        
        logger.info(f"Refunded {LOOKUP_COST} credit to {user_id}")
        return Account.from_document(doc)
    
    async def count_accounts(self) -> int:
        return await self.store.count()
    
    async def list_account_ids(self) -> List[int]:
        return await self.store.list_ids()


def parse_referrer_id(payload: Optional[str]) -> Optional[int]:
    """Referrer id from a /start deep-link payload, or None."""
    return parse_int(payload)
