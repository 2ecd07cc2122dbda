"""
Tests for change notifications and the edit guard.
"""

import logging
import uuid

import pytest

from app.core.exceptions import ImmutableDocumentError
from app.schemas.document import DocType, DocumentStatus
from app.services.edit_guard import assert_editable, is_editable
from app.services.notification_service import DocumentChangeNotifier


class TestNotifier:

    def test_listeners_receive_id_and_type(self):
        received = []
        notifier = DocumentChangeNotifier()
        notifier.subscribe(lambda document_id, doc_type: received.append((document_id, doc_type)))
        document_id = uuid.uuid4()

        notifier.notify(document_id, "INVOICE")

        assert received == [(document_id, DocType.INVOICE)]

    def test_subscribe_twice_notifies_once(self):
        received = []
        notifier = DocumentChangeNotifier()

        def listener(document_id, doc_type):
            received.append(doc_type)

        notifier.subscribe(listener)
        notifier.subscribe(listener)
        notifier.notify(uuid.uuid4(), DocType.OFFER)
        notifier.unsubscribe(listener)
        notifier.notify(uuid.uuid4(), DocType.OFFER)

        assert received == [DocType.OFFER]

    def test_failing_listener_is_logged(self, caplog):
        received = []
        notifier = DocumentChangeNotifier()

        def broken(document_id, doc_type):
            raise RuntimeError("cache non raggiungibile")

        notifier.subscribe(broken)
        notifier.subscribe(lambda document_id, doc_type: received.append(doc_type))

        with caplog.at_level(logging.ERROR, logger="app.services.notification_service"):
            notifier.notify(uuid.uuid4(), DocType.STORNO)

        assert received == [DocType.STORNO]
        assert "Listener di notifica fallito" in caplog.text


class TestEditGuard:

    @pytest.mark.parametrize(
        "status, editable",
        [
            (DocumentStatus.DRAFT, True),
            (DocumentStatus.SENT, True),
            (DocumentStatus.CONVERTED, True),
            (DocumentStatus.PAID, False),
            (DocumentStatus.CANCELLED, False),
        ],
    )
    def test_is_editable(self, status, editable):
        assert is_editable(status.value) is editable

    def test_assert_editable_raises(self):
        with pytest.raises(ImmutableDocumentError) as exc_info:
            assert_editable("PAID")

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "IMMUTABLE_DOCUMENT"
