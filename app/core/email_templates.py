"""Subject/body builders for lease notifications, keyed by event kind."""
from html import escape
from typing import Callable, Dict, Optional, Tuple

from app.core.config import settings

Rendered = Tuple[str, str]


def _lease_url(audience: str, lease_id: int) -> str:
    return f"{settings.APP_BASE_URL}/{audience}/leases/{lease_id}"


def lease_sent(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"New Lease Agreement: {address}",
        f"<p>You have a new lease agreement for <strong>{address}</strong> waiting for your signature.</p>"
        f'<p><a href="{_lease_url("tenant", lease_id)}">Review and sign the lease</a></p>',
    )


def tenant_signed(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Lease Signed: {address}",
        f"<p>The tenant has signed the lease for <strong>{address}</strong>.</p>"
        f'<p><a href="{_lease_url("landlord", lease_id)}">Review the signed lease</a></p>',
    )


def lease_approved(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Lease Approved: {address}",
        f"<p>Your lease for <strong>{address}</strong> has been approved.</p>"
        f'<p><a href="{_lease_url("tenant", lease_id)}">View your lease</a></p>',
    )


def lease_rejected(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Lease Application Update: {address}",
        f"<p>Your lease for <strong>{address}</strong> was not approved.</p>"
        f"<p>Reason: {notes or 'No reason provided'}</p>",
    )


def revision_requested(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Action Required: Lease Revision for {address}",
        f"<p>The landlord has requested changes to your lease for <strong>{address}</strong>.</p>"
        f"<p>Notes: {notes or ''}</p>"
        f'<p><a href="{_lease_url("tenant", lease_id)}">Update and re-sign</a></p>',
    )


def lease_terminated(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Lease Terminated: {address}",
        f"<p>Your lease for <strong>{address}</strong> has been terminated.</p>"
        f"<p>Reason: {notes or 'No reason provided'}</p>",
    )


def lease_expired(lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    return (
        f"Lease Ended: {address}",
        f"<p>Your lease for <strong>{address}</strong> reached its end date and has expired.</p>",
    )


TEMPLATES: Dict[str, Callable[..., Rendered]] = {
    "lease_sent": lease_sent,
    "tenant_signed": tenant_signed,
    "lease_approved": lease_approved,
    "lease_rejected": lease_rejected,
    "revision_requested": revision_requested,
    "lease_terminated": lease_terminated,
    "lease_expired": lease_expired,
}


def render(kind: str, lease_id: int, address: str, notes: Optional[str] = None) -> Rendered:
    """Subjects are plain text; only the HTML body gets escaped values."""
    template = TEMPLATES[kind]
    subject, _ = template(lease_id, address, notes)
    _, body = template(lease_id, escape(address), escape(notes) if notes else notes)
    return subject, body
