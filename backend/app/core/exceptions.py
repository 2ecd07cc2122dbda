"""
Eccezioni di dominio
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Ogni eccezione porta status HTTP ed error code: l'handler in app.main
le converte in {"detail", "error_code", "extra"} senza mapping aggiuntivi.

Sollevate dentro una transazione (app.core.transaction.atomic) la
annullano per intero: nessuna scrittura parziale.

NOTA: BusinessValidationError è distinta da pydantic.ValidationError.
- pydantic.ValidationError: formato/tipo dei dati in input (FastAPI → 422)
- BusinessValidationError: regole di business violate (nostro handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "ImmutableDocumentError",
    "InvalidTransitionError",
    "InvalidSelectionError",
    "BusinessValidationError",
    "ConflictError",
]


class AppException(Exception):
    """
    Base delle eccezioni applicative.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo stabile dell'errore per il frontend
        detail: Messaggio leggibile per l'utente
        extra: Dati aggiuntivi opzionali (es. stato del documento)
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail if detail is not None else self.default_detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(self.detail)


class NotFoundError(AppException):
    """Documento, riga, cliente, veicolo, prestazione o scheda di lavoro inesistente."""

    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"
    default_detail = "Risorsa non trovata"


class ImmutableDocumentError(AppException):
    """
    Modifica di un documento pagato o stornato.

    Una volta che il denaro è passato di mano documento e righe sono in
    sola lettura; le uniche transizioni ammesse partono dai documenti
    derivati (storno, nota di credito).
    """

    status_code = 409
    error_code = "IMMUTABLE_DOCUMENT"
    default_detail = "Il documento non è più modificabile"


class InvalidTransitionError(AppException):
    """
    Transizione di stato non consentita.

    Esempi:
        - "Solo le fatture finali possono essere pagate"
        - "Solo le fatture pagate possono essere stornate"
        - "L'offerta è già stata convertita in fattura"
    """

    status_code = 409
    error_code = "INVALID_TRANSITION"
    default_detail = "Transizione di stato non consentita"


class InvalidSelectionError(AppException):
    """Selezione per nota di credito vuota o ridotta a zero dopo i limiti."""

    status_code = 422
    error_code = "INVALID_SELECTION"
    default_detail = "Nessuna posizione valida selezionata"


class BusinessValidationError(ValueError, AppException):
    """
    Regola di business violata.

    Eredita da ValueError per poter essere sollevata anche dai validatori
    Pydantic.

    Esempi:
        - "La scheda di lavoro non contiene tempo fatturabile"
        - "Dati per OFFER non applicabili a un documento INVOICE"
        - "Il veicolo non è disponibile in giacenza"
    """

    status_code = 422
    error_code = "BUSINESS_VALIDATION_ERROR"
    default_detail = "Validazione dati fallita"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # ValueError.__init__ non accetta error_code ed extra
        AppException.__init__(self, detail, error_code, extra)


class ConflictError(AppException):
    """Vincolo di integrità violato al commit (es. numero finale duplicato)."""

    status_code = 409
    error_code = "CONFLICT_STATE"
    default_detail = "Conflitto di stato"
