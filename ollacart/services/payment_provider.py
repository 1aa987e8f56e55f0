"""
Payment Provider - Fournisseur de paiement simulé (comptes Connect, intents, webhooks).

Aucun appel réseau: les ids sont générés localement et les événements
webhook sont construits par build_event() pour les tests et la démo.

Injection de pannes:
- fail_account_creation: create_connect_account lève PaymentProviderError
- fail_payment_intents: create_payment_intent lève PaymentProviderError
"""
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from ollacart.core.config import CONNECT_ONBOARDING_BASE_URL
from ollacart.core.exceptions import PaymentProviderError
from ollacart.schemas import ConnectAccount, StripePayment
from ollacart.utils.ids import new_id, now_ms

# Exigences d'onboarding renvoyées pour un compte neuf
_INITIAL_REQUIREMENTS = {
    "currently_due": ["business_profile.url", "external_account", "tos_acceptance.date"],
    "eventually_due": ["individual.verification.document"],
    "past_due": [],
}


class MockPaymentProvider:
    """Fournisseur simulé, état en mémoire (comptes et intents créés)."""

    def __init__(
        self,
        onboarding_base_url: str = CONNECT_ONBOARDING_BASE_URL,
        fail_account_creation: bool = False,
        fail_payment_intents: bool = False,
    ):
        self.onboarding_base_url = onboarding_base_url.rstrip("/")
        self.fail_account_creation = fail_account_creation
        self.fail_payment_intents = fail_payment_intents
        self.accounts: Dict[str, ConnectAccount] = {}
        self.intents: Dict[str, Dict[str, Any]] = {}

    async def create_connect_account(self, retailer_id: str, email: str) -> ConnectAccount:
        if self.fail_account_creation:
            logger.warning(f"Connect account creation refused for retailer {retailer_id}")
            raise PaymentProviderError(
                "Connect account creation failed", entity="retailers", entity_id=retailer_id
            )

        account = ConnectAccount(
            account_id=new_id("acct"),
            requirements={key: list(value) for key, value in _INITIAL_REQUIREMENTS.items()},
        )
        self.accounts[account.account_id] = account
        logger.info(f"Connect account {account.account_id} created for {email}")
        return account

    async def create_account_link(self, account_id: str) -> str:
        """URL d'onboarding hébergée par le fournisseur."""
        return f"{self.onboarding_base_url}/{account_id}"

    async def create_payment_intent(
        self,
        amount: float,
        currency: str,
        application_fee: float,
        destination: Optional[str],
        metadata: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Retourne l'id de l'intent (montants convertis en centimes comme côté fournisseur)."""
        if self.fail_payment_intents:
            logger.warning(f"Payment intent refused (destination={destination})")
            raise PaymentProviderError("Payment intent creation failed", entity="stripe_payments")

        intent_id = new_id("pi")
        self.intents[intent_id] = {
            "id": intent_id,
            "amount": int(round(amount * 100)),
            "currency": currency,
            "application_fee_amount": int(round(application_fee * 100)),
            "destination": destination,
            "metadata": dict(metadata or {}),
            "status": "requires_payment_method",
        }
        logger.debug(f"Payment intent {intent_id} created: {amount:.2f} {currency}")
        return intent_id

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    def build_event(self, event_type: str, obj: Mapping[str, Any]) -> Dict[str, Any]:
        """Enveloppe d'événement au format du fournisseur: {id, type, created, data.object}."""
        return {
            "id": new_id("evt"),
            "type": event_type,
            "created": now_ms() // 1000,
            "data": {"object": dict(obj)},
        }

    def account_updated_event(
        self,
        account_id: str,
        charges_enabled: bool = True,
        payouts_enabled: bool = True,
    ) -> Dict[str, Any]:
        return self.build_event("account.updated", {
            "id": account_id,
            "object": "account",
            "charges_enabled": charges_enabled,
            "payouts_enabled": payouts_enabled,
        })

    def payment_intent_event(self, payment: StripePayment, succeeded: bool = True) -> Dict[str, Any]:
        event_type = "payment_intent.succeeded" if succeeded else "payment_intent.payment_failed"
        intent = dict(self.intents.get(payment.stripe_payment_intent_id) or {})
        intent.update({
            "id": payment.stripe_payment_intent_id,
            "object": "payment_intent",
            "status": "succeeded" if succeeded else "requires_payment_method",
            "metadata": {**intent.get("metadata", {}), "paymentId": payment.id},
        })
        return self.build_event(event_type, intent)
