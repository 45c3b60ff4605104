"""
Tests for TransactionSelector: the ordered replay read and the paginated
movement history.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from stock_kernel.domain.values import Location
from stock_kernel.exceptions import (
    InvalidPageRequestError,
    TransactionLogUnavailableError,
)
from stock_kernel.selectors.transaction_selector import TransactionSelector


class TestReadTransactions:
    def _seed(self, stock_data):
        self.amox = stock_data.product("Amoxicillin 500", "AMX500")
        self.dolo = stock_data.product("Dolo 650", "PCM650")
        self.amox_b1 = stock_data.batch(self.amox, "AX-1")
        self.amox_b2 = stock_data.batch(self.amox, "AX-2")
        self.dolo_b1 = stock_data.batch(self.dolo, "DL-1")
        stock_data.stock_in(self.amox, self.amox_b1, 100)
        stock_data.stock_in(self.dolo, self.dolo_b1, 50)
        stock_data.dispatch(self.amox, self.amox_b1, 40, mr_id="7")
        stock_data.stock_in(self.amox, self.amox_b2, 20)

    def test_ordered_by_seq(self, session, stock_data):
        self._seed(stock_data)
        txs = TransactionSelector(session).read_transactions()
        assert [tx.seq for tx in txs] == [1, 2, 3, 4]

    def test_locations_parsed(self, session, stock_data):
        self._seed(stock_data)
        dispatch = TransactionSelector(session).read_transactions()[2]
        assert dispatch.transaction_type == "DISPATCH_TO_MR"
        assert dispatch.source == Location.godown()
        assert dispatch.destination == Location.mr("7")
        assert dispatch.unit_cost == Decimal("5.00")
        assert dispatch.occurred_at == date(2024, 1, 15)
        assert dispatch.transaction_id is not None

    def test_product_scope(self, session, stock_data):
        self._seed(stock_data)
        txs = TransactionSelector(session).read_transactions(product_ids={self.dolo.id})
        assert [tx.seq for tx in txs] == [2]

    def test_batch_scope(self, session, stock_data):
        self._seed(stock_data)
        txs = TransactionSelector(session).read_transactions(
            product_ids={self.amox.id}, batch_ids={self.amox_b1.id},
        )
        assert [tx.seq for tx in txs] == [1, 3]

    def test_empty_scope_reads_nothing(self, session, stock_data):
        self._seed(stock_data)
        assert TransactionSelector(session).read_transactions(product_ids=set()) == []

    def test_negative_quantity_normalized(self, session, stock_data, captured_logs):
        product = stock_data.product("Dolo 650", "PCM650")
        batch = stock_data.batch(product, "DL-1")
        stock_data.transaction(
            product, batch, "SALE_DIRECT_GODOWN", -30, "2.00",
            source=("GODOWN", None), destination=("CUSTOMER", None),
        )

        (tx,) = TransactionSelector(session).read_transactions()

        assert tx.quantity == 30
        (record,) = [r for r in captured_logs() if r["message"] == "log_quantity_normalized"]
        assert record["stored_quantity"] == -30
        assert record["seq"] == tx.seq

    def test_mr_without_id_has_no_location(self, session, stock_data):
        product = stock_data.product("Dolo 650", "PCM650")
        batch = stock_data.batch(product, "DL-1")
        stock_data.transaction(
            product, batch, "SALE_BY_MR", 3, source=("MR", None), destination=("CUSTOMER", None),
        )
        (tx,) = TransactionSelector(session).read_transactions()
        assert tx.source is None
        assert tx.destination == Location.customer()

    def test_read_error_is_log_unavailable(self, session):
        selector = TransactionSelector(session)
        with patch.object(
            session, "execute",
            side_effect=OperationalError("SELECT", None, Exception("connection lost")),
        ):
            with pytest.raises(TransactionLogUnavailableError) as exc_info:
                selector.read_transactions()
        assert exc_info.value.code == "TRANSACTION_LOG_UNAVAILABLE"


class TestListMovements:
    """Movement history: newest first, searchable, paginated."""

    def _seed(self, stock_data):
        amox = stock_data.product("Amoxicillin 500", "AMX500")
        dolo = stock_data.product("Dolo 650", "PCM650")
        amox_b = stock_data.batch(amox, "AX-2401")
        dolo_b = stock_data.batch(dolo, "DL-77")
        stock_data.stock_in(amox, amox_b, 100, reference_document_type="GRN",
                            reference_document_id="GRN-1001")
        stock_data.stock_in(dolo, dolo_b, 60, reference_document_type="GRN",
                            reference_document_id="GRN-1002")
        stock_data.dispatch(amox, amox_b, 40, mr_id="7", reference_document_type="DC",
                            reference_document_id="DC_50%")
        stock_data.transaction(
            dolo, dolo_b, "SALE_DIRECT_GODOWN", 5, "2.00",
            source=("GODOWN", None), destination=("CUSTOMER", None),
            reference_document_type="INVOICE", reference_document_id="INV-9",
            notes="walk-in",
        )

    def test_newest_first_with_labels(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements()
        assert [m.seq for m in page.movements] == [4, 3, 2, 1]
        assert page.total_count == 4
        latest = page.movements[0]
        assert latest.product_name == "Dolo 650"
        assert latest.product_code == "PCM650"
        assert latest.batch_number == "DL-77"
        assert latest.destination == Location.customer()
        assert latest.notes == "walk-in"

    def test_search_by_product_code_case_insensitive(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements(search="amx")
        assert [m.seq for m in page.movements] == [3, 1]

    def test_search_by_reference_document(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements(search="grn-100")
        assert page.total_count == 2

    def test_search_by_batch_number(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements(search="dl-77")
        assert [m.seq for m in page.movements] == [4, 2]

    def test_search_wildcards_are_literal(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements(search="_50%")
        assert [m.reference_document_id for m in page.movements] == ["DC_50%"]

    def test_type_filter(self, session, stock_data):
        self._seed(stock_data)
        page = TransactionSelector(session).list_movements(transaction_type="STOCK_IN_GODOWN")
        assert [m.seq for m in page.movements] == [2, 1]

    def test_pagination(self, session, stock_data):
        self._seed(stock_data)
        selector = TransactionSelector(session)
        first = selector.list_movements(offset=0, limit=3)
        second = selector.list_movements(offset=3, limit=3)
        assert [m.seq for m in first.movements] == [4, 3, 2]
        assert [m.seq for m in second.movements] == [1]
        assert first.total_count == second.total_count == 4

    def test_unresolved_product_still_listed(self, session, stock_data):
        from uuid import uuid4

        stock_data.transaction(uuid4(), uuid4(), "STOCK_IN_GODOWN", 1, "1.00")
        (movement,) = TransactionSelector(session).list_movements().movements
        assert movement.product_name is None
        assert movement.batch_number is None

    @pytest.mark.parametrize("offset,limit", [(-1, 10), (0, 0)])
    def test_invalid_page(self, session, offset, limit):
        with pytest.raises(InvalidPageRequestError):
            TransactionSelector(session).list_movements(offset=offset, limit=limit)
