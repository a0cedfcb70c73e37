from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator

# Context variables are kept per thread / async task.
correlation_id_var = contextvars.ContextVar("correlation_id", default=None)
document_id_var = contextvars.ContextVar("document_id", default=None)
document_kind_var = contextvars.ContextVar("document_kind", default=None)
phase_var = contextvars.ContextVar("phase", default=None)
tax_mode_var = contextvars.ContextVar("tax_mode", default=None)

_VARS: Dict[str, contextvars.ContextVar] = {
    "correlation_id": correlation_id_var,
    "document_id": document_id_var,
    "document_kind": document_kind_var,
    "phase": phase_var,
    "tax_mode": tax_mode_var,
}


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def get_forensic_fields() -> Dict[str, Any]:
    """Current state of all forensic context variables as a dict."""
    return {name: var.get() for name, var in _VARS.items()}


@contextmanager
def forensic_scope(**fields: Any) -> Iterator[None]:
    """
    Temporarily sets the selected context variables.
    Previous values are restored when the scope exits; unknown keys are ignored.
    """
    tokens: Dict[str, Any] = {}
    try:
        for key, value in fields.items():
            var = _VARS.get(key)
            if var is not None:
                tokens[key] = var.set(value)
        yield
    finally:
        for key, tok in tokens.items():
            try:
                _VARS[key].reset(tok)
            except ValueError:
                # token created in a different context
                pass
