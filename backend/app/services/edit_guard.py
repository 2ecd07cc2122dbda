"""
Controllo di modificabilità dei documenti
Progetto: Beleg Manager (Gestionale Documenti Commerciali)
"""

from app.core.exceptions import ImmutableDocumentError, InvalidTransitionError
from app.schemas.document import DocumentStatus

# Stati in cui il denaro è già passato di mano
IMMUTABLE_STATUSES = frozenset({DocumentStatus.PAID, DocumentStatus.CANCELLED})


def is_editable(status: str) -> bool:
    return DocumentStatus(status) not in IMMUTABLE_STATUSES


def assert_editable(status: str) -> None:
    """
    Verifica che un documento nello stato indicato sia modificabile.

    Va chiamata per prima, dentro la transazione, da ogni operazione che
    scrive sul documento o sulle sue righe.

    Raises:
        ImmutableDocumentError: Documento pagato o stornato
    """
    if not is_editable(status):
        raise ImmutableDocumentError(
            f"Documento in stato {DocumentStatus(status).value}: modifiche non consentite",
            extra={"status": DocumentStatus(status).value},
        )


def assert_draft(document, action: str) -> None:
    """
    Righe ed eliminazione sono ammesse solo su documenti in bozza.

    Un documento finale va prima riportato in bozza (toggle_finalize):
    il numero finale resta comunque riservato.

    Raises:
        InvalidTransitionError: Documento finale
    """
    if document.is_final:
        raise InvalidTransitionError(
            f"Il documento finale {document.doc_number} non ammette {action}",
            extra={"status": DocumentStatus(document.status).value},
        )
