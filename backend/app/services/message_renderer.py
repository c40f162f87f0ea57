"""Render trigger templates into personalized reminder messages and delivery payloads."""
import json
import logging
import string
from datetime import date

from app.models.lease import Lease
from app.models.property import Property, Tenant
from app.models.reminder import ReminderSchedule
from app.models.trigger import ReminderTrigger
from app.services.errors import RenderError, ValidationError
from app.services.reminder_periods import parse_date

logger = logging.getLogger(__name__)

TEMPLATE_PLACEHOLDERS = frozenset({
    "tenant_name",
    "tenant_phone",
    "property_name",
    "property_address",
    "unit_number",
    "rent_amount",
    "rent_currency",
    "due_date",
    "trigger_date",
    "lease_end_date",
    "days",
})

_formatter = string.Formatter()


def format_amount(amount: float | None, currency: str | None = "KES") -> str:
    """Format a rent amount as e.g. 'KES 50,000'."""
    if amount is None:
        return f"{currency or 'KES'} 0"
    return f"{currency or 'KES'} {amount:,.0f}"


def format_date(value: date | None) -> str:
    """Format a date as e.g. '5 Mar 2024'."""
    if value is None:
        return ""
    return f"{value.day} {value.strftime('%b %Y')}"


def template_placeholders(template: str) -> set[str]:
    """Return the placeholder names used in a template.

    Raises ValueError for malformed templates (unbalanced braces).
    """
    names = set()
    for _, field_name, _, _ in _formatter.parse(template):
        if field_name is None:
            continue
        if field_name == "" or not field_name.isidentifier():
            raise ValueError(f"Unsupported placeholder '{{{field_name}}}'")
        names.add(field_name)
    return names


def validate_template(template: str | None) -> str:
    """Check a message template is non-empty and only uses known placeholders."""
    if template is None or not template.strip():
        raise ValidationError("message_template must not be empty")
    try:
        names = template_placeholders(template)
    except ValueError as e:
        raise ValidationError(f"Malformed message_template: {e}") from e
    unknown = names - TEMPLATE_PLACEHOLDERS
    if unknown:
        raise ValidationError(
            f"Unknown placeholders in message_template: {', '.join(sorted(unknown))}"
        )
    return template


def build_context(
    trigger: ReminderTrigger,
    lease: Lease,
    tenant: Tenant | None,
    property_: Property | None,
    trigger_date: date,
    anchor_date: date,
) -> dict:
    """Collect template variables from the lease/tenant/property context.

    Absent values are kept as None so rendering can tell which ones a
    template actually needs.
    """
    end_date = parse_date(lease.end_date)
    return {
        "tenant_name": tenant.name if tenant else None,
        "tenant_phone": tenant.phone if tenant else None,
        "property_name": property_.name if property_ else None,
        "property_address": property_.address if property_ else None,
        "unit_number": lease.unit_number,
        "rent_amount": format_amount(lease.rent_amount, lease.rent_currency) if lease.rent_amount is not None else None,
        "rent_currency": lease.rent_currency,
        "due_date": format_date(anchor_date),
        "trigger_date": format_date(trigger_date),
        "lease_end_date": format_date(end_date) if end_date else None,
        "days": str(abs(trigger.day_offset)),
    }


def render(
    trigger: ReminderTrigger,
    lease: Lease,
    tenant: Tenant | None,
    property_: Property | None,
    trigger_date: date,
    anchor_date: date,
) -> dict:
    """Render a trigger's template for one lease.

    Returns dict with personalized_message and metadata.
    Raises RenderError if the tenant or property is missing, or a value the
    template needs is absent.
    """
    if tenant is None:
        raise RenderError(f"Lease {lease.id} has no tenant")
    if property_ is None:
        raise RenderError(f"Lease {lease.id} has no property")

    context = build_context(trigger, lease, tenant, property_, trigger_date, anchor_date)

    try:
        needed = template_placeholders(trigger.message_template or "")
    except ValueError as e:
        raise RenderError(f"Malformed template for trigger {trigger.name}: {e}") from e

    unknown = needed - TEMPLATE_PLACEHOLDERS
    if unknown:
        raise RenderError(f"Unknown placeholders: {', '.join(sorted(unknown))}")

    missing = sorted(name for name in needed if context.get(name) in (None, ""))
    if missing:
        raise RenderError(
            f"Missing values for lease {lease.id}: {', '.join(missing)}"
        )

    try:
        message = trigger.message_template.format_map(context)
    except (KeyError, IndexError, ValueError) as e:
        raise RenderError(f"Failed to render template for trigger {trigger.name}: {e}") from e

    metadata = {
        "tenant_name": tenant.name,
        "tenant_phone": tenant.phone,
        "property_name": property_.name,
        "unit_number": lease.unit_number,
        "rent_amount": lease.rent_amount,
        "rent_currency": lease.rent_currency,
        "formatted_amount": context["rent_amount"],
        "due_date": context["due_date"],
        "anchor_date": anchor_date.isoformat(),
        "trigger_date": trigger_date.isoformat(),
        "day_offset": trigger.day_offset,
        "lease_end_date": lease.end_date,
    }
    return {"personalized_message": message, "metadata": metadata}


def build_delivery_payload(reminder: ReminderSchedule) -> dict:
    """Prepare the payload handed to the messaging collaborator.

    Raises RenderError if the reminder has no message or no recipient.
    """
    if reminder is None or not reminder.personalized_message:
        raise RenderError("Reminder has no personalized message")

    metadata = json.loads(reminder.reminder_metadata or "{}")
    tenant = reminder.tenant
    lease = reminder.lease
    property_ = reminder.property

    to = (tenant.phone if tenant else None) or metadata.get("tenant_phone")
    if not to:
        raise RenderError(f"Reminder {reminder.id} has no recipient phone number")

    return {
        "to": to,
        "message": reminder.personalized_message,
        "template_variables": {
            "tenant_name": metadata.get("tenant_name") or (tenant.name if tenant else None) or "Tenant",
            "property_name": metadata.get("property_name") or (property_.name if property_ else None) or "Property",
            "rent_amount": metadata.get("rent_amount", lease.rent_amount if lease else 0),
            "due_date": metadata.get("due_date") or "N/A",
            "lease_id": reminder.lease_id,
            "tenant_id": reminder.tenant_id,
            "property_id": reminder.property_id,
        },
        "metadata": {
            "reminder_id": reminder.id,
            "reminder_type": reminder.reminder_type,
            "trigger_date": reminder.trigger_date,
            "lease_id": reminder.lease_id,
            "tenant_id": reminder.tenant_id,
        },
    }


def bulk_build_delivery_payloads(reminders: list[ReminderSchedule]) -> list[dict]:
    """Prepare payloads for many reminders, skipping those that cannot be prepared."""
    payloads = []
    for reminder in reminders:
        try:
            payloads.append(build_delivery_payload(reminder))
        except RenderError as e:
            logger.warning(f"Skipping reminder {getattr(reminder, 'id', None)}: {e}")
    return payloads
