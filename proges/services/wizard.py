# =========================================================
# RECORD WIZARD
#
# Holds a draft aggregate across numbered steps (1..N).
# - next() only advances when the current step has what it needs
# - back() never goes below step 1
# - open() / close() throw the draft away
# - commit() validates every step, then hands the draft to the
#   commit sequence; a second commit while one is running is refused
# =========================================================

import logging
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel

from proges.core.backend import Backend
from proges.core.errors import StepValidationError, WizardBusyError
from proges.schemas.product import ProductDraft
from proges.schemas.purchase_order import PurchaseOrderDraft
from proges.schemas.sale import SaleDraft
from proges.services.commit import (
    CommitResult,
    ProductCommit,
    PurchaseOrderCommit,
    SaleCommit,
)

logger = logging.getLogger("proges")


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


@dataclass
class WizardStep:
    name: str
    required: tuple[str, ...] = ()
    # Extra rule returning the names of whatever is missing
    check: Callable[[BaseModel], list[str]] | None = None

    def missing(self, draft: BaseModel) -> list[str]:
        missing = [field for field in self.required if _blank(getattr(draft, field))]

        if self.check:
            missing.extend(self.check(draft))

        return missing


class Wizard:
    def __init__(
        self,
        steps: list[WizardStep],
        make_draft: Callable[[], BaseModel],
        commit: Callable[[BaseModel], CommitResult],
    ):
        self.steps = steps
        self.make_draft = make_draft
        self._commit = commit

        self.is_open = False
        self.reset()

    @property
    def current(self) -> WizardStep:
        return self.steps[self.step - 1]

    @property
    def last_step(self) -> int:
        return len(self.steps)

    def reset(self):
        self.step = 1
        self.draft = self.make_draft()
        self.is_loading = False

    def open(self):
        self.reset()
        self.is_open = True

    def close(self):
        self.reset()
        self.is_open = False

    # =========================================================
    # DRAFT EDITING
    # =========================================================
    def update(self, **fields):
        values = {**self.draft.model_dump(), **fields}
        self.draft = type(self.draft).model_validate(values)

    def add_item(self, **line):
        items = self.draft.model_dump()["items"]
        self.update(items=[*items, line])

    def remove_item(self, index: int):
        items = self.draft.model_dump()["items"]
        del items[index]
        self.update(items=items)

    # =========================================================
    # NAVIGATION
    # =========================================================
    def missing_fields(self, step: int | None = None) -> list[str]:
        step = step or self.step
        return self.steps[step - 1].missing(self.draft)

    def next(self):
        missing = self.missing_fields()

        if missing:
            raise StepValidationError(self.step, self.current.name, missing)

        self.step = min(self.step + 1, self.last_step)

    def back(self):
        self.step = max(self.step - 1, 1)

    # =========================================================
    # COMMIT
    # =========================================================
    def commit(self) -> CommitResult:
        if self.is_loading:
            raise WizardBusyError("A commit is already in progress")

        for number, step in enumerate(self.steps, start=1):
            missing = step.missing(self.draft)
            if missing:
                raise StepValidationError(number, step.name, missing)

        self.is_loading = True

        try:
            result = self._commit(self.draft)
        finally:
            self.is_loading = False

        # On failure the draft stays so the user can fix it and retry
        self.close()
        return result

    def finish(self, draft: BaseModel) -> CommitResult:
        """Open the wizard on a complete draft and commit it in one go."""
        self.open()
        self.draft = draft
        return self.commit()


# =========================================================
# STEP RULES
# =========================================================
def _client_chosen(draft: SaleDraft) -> list[str]:
    if draft.client_id is None and _blank(draft.client_name):
        return ["client"]
    return []


def _supplier_chosen(draft: PurchaseOrderDraft) -> list[str]:
    if draft.supplier_id is None and _blank(draft.supplier_name):
        return ["supplier"]
    return []


def _category_chosen(draft: ProductDraft) -> list[str]:
    if draft.category_id is None and _blank(draft.category_name):
        return ["category"]
    return []


def _sale_lines(draft: SaleDraft) -> list[str]:
    return [
        f"items[{index}].name"
        for index, item in enumerate(draft.items)
        if item.product_id is None and _blank(item.name)
    ]


def _purchase_lines(draft: PurchaseOrderDraft) -> list[str]:
    missing = []

    for index, item in enumerate(draft.items):
        if item.product_id is not None:
            continue
        if _blank(item.name):
            missing.append(f"items[{index}].name")
        if _blank(item.category_name):
            missing.append(f"items[{index}].category_name")

    return missing


# =========================================================
# FACTORIES
# =========================================================
def sale_wizard(backend: Backend, user_id: int, **options) -> Wizard:
    steps = [
        WizardStep("client", check=_client_chosen),
        WizardStep("items", required=("items",), check=_sale_lines),
        WizardStep("payment", required=("status",)),
    ]
    return Wizard(steps, SaleDraft, SaleCommit(backend, user_id, **options).run)


def purchase_order_wizard(backend: Backend, user_id: int, **options) -> Wizard:
    steps = [
        WizardStep("supplier", required=("order_date",), check=_supplier_chosen),
        WizardStep("items", required=("items",), check=_purchase_lines),
        WizardStep("payment", required=("payment_status",)),
    ]
    return Wizard(steps, PurchaseOrderDraft, PurchaseOrderCommit(backend, user_id, **options).run)


def product_wizard(backend: Backend, user_id: int, **options) -> Wizard:
    steps = [
        WizardStep("details", required=("name",), check=_category_chosen),
        WizardStep("pricing"),
        WizardStep("supplier"),
    ]
    return Wizard(steps, ProductDraft, ProductCommit(backend, user_id, **options).run)
