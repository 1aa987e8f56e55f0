"""
Hiérarchie d'exceptions du domaine commerce.

Permet de distinguer:
- Erreurs d'entrée (validation, pas de retry)
- Règles métier (fork, onboarding, transitions de paiement)
- Erreurs de stockage (store injoignable, retry possible côté appelant)

Chaque exception porte le status HTTP utilisé par l'API.
Aucune opération ne fait de retry automatique.
"""
from typing import Optional


class OllaCartError(Exception):
    """Exception de base pour tout le domaine."""

    status_code = 400

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        retryable: bool = False,
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.retryable = retryable
        super().__init__(message)

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.entity:
            parts.append(f"entity={self.entity}")
        if self.entity_id:
            parts.append(f"id={self.entity_id}")
        return " | ".join(parts)


# =============================================================================
# ERREURS D'ENTRÉE
# =============================================================================

class ValidationError(OllaCartError):
    """Entrée manquante ou hors bornes."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        self.field = field
        super().__init__(message, retryable=False, **kwargs)


class NotFoundError(OllaCartError):
    """L'id référencé ne correspond à aucun enregistrement."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


# =============================================================================
# RÈGLES MÉTIER
# =============================================================================

class SelfForkError(OllaCartError):
    """Fork d'un produit dont l'appelant est propriétaire."""

    status_code = 409

    def __init__(self, message: str = "You cannot add from your own cart", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class AlreadyForkedError(OllaCartError):
    """L'appelant a déjà forké ce produit source."""

    status_code = 409

    def __init__(self, message: str = "Already added", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class OnboardingIncomplete(OllaCartError):
    """Le retailer n'a pas terminé l'onboarding du fournisseur de paiement."""

    status_code = 409

    def __init__(self, message: str = "Retailer onboarding not complete", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class ProviderAccountMissing(OllaCartError):
    """Aucun compte fournisseur de paiement n'a été provisionné."""

    status_code = 409

    def __init__(self, message: str = "Payment provider account not created", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class PaymentStateError(OllaCartError):
    """
    Transition de statut de paiement interdite.

    pending -> succeeded | failed, puis plus rien.
    """

    status_code = 409

    def __init__(self, message: str, current_status: Optional[str] = None, **kwargs):
        self.current_status = current_status
        super().__init__(message, retryable=False, **kwargs)


# =============================================================================
# ERREURS DE STOCKAGE / FOURNISSEUR
# =============================================================================

class StorageUnavailable(OllaCartError):
    """
    Le store d'entités est injoignable.

    Sur les lectures catalogue/panier, l'appelant peut basculer sur les
    données de démo (mode dégradé). Sur les écritures, l'erreur remonte.
    """

    status_code = 503

    def __init__(self, message: str = "Entity store unavailable", **kwargs):
        super().__init__(message, retryable=True, **kwargs)


class DuplicateRecordError(OllaCartError):
    """Contrainte d'unicité violée côté stockage."""

    status_code = 409

    def __init__(self, message: str = "Record already exists", **kwargs):
        super().__init__(message, retryable=False, **kwargs)


class PaymentProviderError(OllaCartError):
    """Erreur du fournisseur de paiement externe (ici simulé)."""

    status_code = 502

    def __init__(self, message: str, **kwargs):
        super().__init__(message, retryable=True, **kwargs)

