from trustlayer.observability.metrics import (
    record_action_signed,
    record_action_submitted,
    record_reconciliation,
)

__all__ = [
    'record_action_signed',
    'record_action_submitted',
    'record_reconciliation',
]
