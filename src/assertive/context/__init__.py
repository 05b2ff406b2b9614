from .context import (
    MAILBOX_CONTEXT,
    UNIT_CONTEXT,
    current_mailbox,
    get_current_unit,
    mailbox_scope,
    unit_context_scope,
)

__all__ = [
    "MAILBOX_CONTEXT",
    "UNIT_CONTEXT",
    "current_mailbox",
    "get_current_unit",
    "mailbox_scope",
    "unit_context_scope",
]
