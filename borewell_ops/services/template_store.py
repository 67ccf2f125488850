"""
Bill template settings.

Holds the company identity and boilerplate printed on invoices. The template
is handed to the invoice builder as a value; updates come only from the
admin settings action, one writer at a time, last write wins.
"""

import logging
from typing import Any, Optional

from ..models import BillTemplate

logger = logging.getLogger(__name__)


class BillTemplateStore:
    def __init__(self, template: Optional[BillTemplate] = None):
        self._template = template or BillTemplate()

    def get(self) -> BillTemplate:
        return self._template.model_copy(deep=True)

    def update(self, **changes: Any) -> BillTemplate:
        unknown = set(changes) - set(BillTemplate.model_fields)
        if unknown:
            raise ValueError(f"Unknown bill template fields: {', '.join(sorted(unknown))}")
        self._template = BillTemplate.model_validate({**self._template.model_dump(), **changes})
        logger.info(f"Bill template updated: {', '.join(sorted(changes))}")
        return self.get()

    def reset(self) -> BillTemplate:
        self._template = BillTemplate()
        return self.get()
