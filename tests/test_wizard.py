from unittest.mock import MagicMock

import pytest

from conftest import inserted_tables, recording_backend
from proges.core.errors import CommitError, StepValidationError, WizardBusyError
from proges.schemas.sale import SaleDraft
from proges.services.commit import CommitResult
from proges.services.wizard import (
    Wizard,
    product_wizard,
    purchase_order_wizard,
    sale_wizard,
)


def test_next_blocks_until_client_is_given():
    wizard = sale_wizard(recording_backend(), user_id=1)
    wizard.open()

    with pytest.raises(StepValidationError) as excinfo:
        wizard.next()

    assert excinfo.value.step == 1
    assert excinfo.value.missing == ["client"]
    assert wizard.step == 1

    wizard.update(client_name="Acme")
    wizard.next()

    assert wizard.step == 2


def test_items_step_requires_lines_and_names():
    wizard = sale_wizard(recording_backend(), user_id=1)
    wizard.open()
    wizard.update(client_id=5)
    wizard.next()

    assert wizard.missing_fields() == ["items"]

    wizard.add_item(name="", quantity=1, unit_price=100)
    assert wizard.missing_fields() == ["items[0].name"]

    wizard.remove_item(0)
    wizard.add_item(product_id=9, quantity=1, unit_price=100)
    wizard.next()

    assert wizard.step == 3


def test_back_is_floored_at_first_step():
    wizard = sale_wizard(recording_backend(), user_id=1)
    wizard.open()

    wizard.back()
    wizard.back()

    assert wizard.step == 1


def test_next_stops_at_last_step():
    wizard = product_wizard(recording_backend(), user_id=1)
    wizard.open()
    wizard.update(name="Clé USB", category_name="Stockage")

    for _ in range(5):
        wizard.next()

    assert wizard.step == wizard.last_step == 3


def test_open_and_close_discard_the_draft():
    wizard = sale_wizard(recording_backend(), user_id=1)
    wizard.open()
    wizard.update(client_name="Acme")
    wizard.next()

    wizard.close()
    assert wizard.is_open is False
    assert wizard.step == 1
    assert wizard.draft == SaleDraft()

    wizard.open()
    assert wizard.draft.client_name == ""


def test_commit_validates_every_step():
    backend = recording_backend()
    wizard = purchase_order_wizard(backend, user_id=1)
    wizard.open()
    wizard.update(
        supplier_name="Sodeci",
        items=[{"name": "Disque SSD", "quantity": 1, "unit_price": 10}],
    )

    with pytest.raises(StepValidationError) as excinfo:
        wizard.commit()

    assert excinfo.value.step == 2
    assert excinfo.value.missing == ["items[0].category_name"]
    assert backend.insert.call_count == 0


def test_commit_closes_the_wizard_on_success():
    backend = recording_backend()
    wizard = sale_wizard(backend, user_id=1)
    wizard.open()
    wizard.update(client_name="Acme")
    wizard.add_item(product_id=7, name="Widget", quantity=2, unit_price=500)

    result = wizard.commit()

    assert inserted_tables(backend) == ["clients", "sales", "sale_items", "documents"]
    assert result.record["status"] == "Payée"
    assert wizard.is_open is False
    assert wizard.is_loading is False
    assert wizard.draft == SaleDraft()


def test_failed_commit_keeps_the_draft_for_retry():
    backend = recording_backend(fail_on="sale_items")
    wizard = sale_wizard(backend, user_id=1)
    wizard.open()
    wizard.update(client_name="Acme")
    wizard.add_item(product_id=7, quantity=2, unit_price=500)
    wizard.next()
    wizard.next()

    with pytest.raises(CommitError):
        wizard.commit()

    assert wizard.is_open is True
    assert wizard.is_loading is False
    assert wizard.step == 3
    assert wizard.draft.client_name == "Acme"


def test_second_commit_while_loading_is_refused():
    commit = MagicMock()
    wizard = Wizard([], SaleDraft, commit)

    def reenter(draft):
        with pytest.raises(WizardBusyError):
            wizard.commit()
        return CommitResult(record={"id": 1})

    commit.side_effect = reenter

    result = wizard.commit()

    assert result.record == {"id": 1}
    assert commit.call_count == 1


def test_finish_commits_a_complete_draft():
    backend = recording_backend()
    draft = SaleDraft(client_id=3, items=[{"product_id": 7, "quantity": 1, "unit_price": 50}])

    result = sale_wizard(backend, user_id=1).finish(draft)

    assert result.record["client_id"] == 3
    assert inserted_tables(backend) == ["sales", "sale_items", "documents"]


def test_product_details_step_requires_name_and_category():
    wizard = product_wizard(recording_backend(), user_id=1)
    wizard.open()

    assert wizard.missing_fields() == ["name", "category"]

    wizard.update(name="Clé USB", category_id=4)
    assert wizard.missing_fields() == []
