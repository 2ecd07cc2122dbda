"""
Notifiche di modifica documento
Progetto: Beleg Manager (Gestionale Documenti Commerciali)

Punto di aggancio per l'invalidazione delle cache (dettaglio documento e
liste per tipo). Le notifiche partono solo dopo un commit riuscito.
"""

import logging
import uuid
from typing import Callable, List

from app.schemas.document import DocType

logger = logging.getLogger(__name__)

DocumentChangeListener = Callable[[uuid.UUID, DocType], None]


class DocumentChangeNotifier:
    """
    Registro dei listener interessati alle modifiche dei documenti.

    Un listener che solleva un'eccezione viene registrato nei log e non
    interrompe gli altri: il dato è già committato.
    """

    def __init__(self) -> None:
        self._listeners: List[DocumentChangeListener] = []

    def subscribe(self, listener: DocumentChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: DocumentChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, document_id: uuid.UUID, doc_type: DocType) -> None:
        """
        Notifica la modifica di un documento.

        Args:
            document_id: Documento modificato (chiave della vista di dettaglio)
            doc_type: Tipo documento (chiave della vista lista)
        """
        doc_type = DocType(doc_type)
        for listener in list(self._listeners):
            try:
                listener(document_id, doc_type)
            except Exception:
                logger.exception(
                    f"Listener di notifica fallito per documento {document_id} ({doc_type.value})"
                )


# Istanza condivisa dall'applicazione
document_notifier = DocumentChangeNotifier()
