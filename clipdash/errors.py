"""
Error hierarchy for the ephemeral clipboard.

Every error carries the HTTP status it maps to and a message that is safe to
show to the user (never a store URL or token).
"""


class ShareError(Exception):
    """Base error for share operations."""

    status_code = 500
    default_message = "Erreur serveur"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShareError):
    """Caller-fixable input problem (empty share, malformed item)."""

    status_code = 400
    default_message = "Aucun contenu à partager"


class PayloadTooLarge(ShareError):
    """Aggregate or per-file size ceiling exceeded."""

    status_code = 400
    default_message = "Taille totale trop importante (max 4MB)"


class NotFound(ShareError):
    """Unknown, deleted or expired code. The three cases are not distinguished."""

    status_code = 404
    default_message = "Partage non trouvé ou expiré"


class StoreError(ShareError):
    """Connectivity, protocol or deserialization failure of the key-value store."""

    status_code = 500
    default_message = "Erreur du stockage des partages"


class ConfigurationError(ShareError):
    """Store credentials are missing."""

    status_code = 500
    default_message = (
        "Configuration Redis manquante. Veuillez configurer "
        "UPSTASH_REDIS_REST_URL et UPSTASH_REDIS_REST_TOKEN."
    )
