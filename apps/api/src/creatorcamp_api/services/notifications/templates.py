"""Notification templates for application lifecycle events."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from creatorcamp_api.models.notification import NotificationChannelEnum


@dataclass
class RenderedTemplate:
    subject: str
    title: str
    text_body: str
    html_body: str
    channel: NotificationChannelEnum = NotificationChannelEnum.IN_APP


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _campaign_label(data: Mapping[str, Any]) -> str:
    return _clean_str(data.get("campaign_name")) or "your campaign"


def _wrap(greeting: str, title: str, text_lines: list[str]) -> tuple[str, str]:
    text_body = "\n".join([greeting, "", *text_lines, "", "- The Creator Campaigns Team"])
    paragraphs = "".join(f"\n    <p>{html.escape(line)}</p>" for line in text_lines if line)
    html_body = f"""<html>
  <body>
    <h2>{html.escape(title)}</h2>
    <p>{html.escape(greeting)}</p>{paragraphs}
  </body>
</html>"""
    return text_body, html_body


def _render(
    *,
    subject: str,
    title: str,
    lines: list[str],
    contact_name: str | None,
    channel: NotificationChannelEnum,
) -> RenderedTemplate:
    greeting = f"Hi {contact_name}," if contact_name else "Hi there,"
    text_body, html_body = _wrap(greeting, title, lines)
    return RenderedTemplate(
        subject=subject,
        title=title,
        text_body=text_body,
        html_body=html_body,
        channel=channel,
    )


def render_application_approved(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    campaign = _campaign_label(data)
    brand = _clean_str(data.get("brand_name"))
    by_brand = f" by {brand}" if brand else ""
    lines = [f'Great news! Your application for "{campaign}"{by_brand} has been approved.']
    if data.get("auto_approved"):
        lines.append("As a VIP creator you were approved automatically.")
    lines.append("Make sure your shipping address is up to date before the product ships.")
    return _render(
        subject=f"You've been approved for {campaign}",
        title="Application Approved!",
        lines=lines,
        contact_name=contact_name,
        channel=NotificationChannelEnum.BOTH,
    )


def render_application_rejected(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    return _render(
        subject=f"Update on your application for {_campaign_label(data)}",
        title="Application Not Selected",
        lines=["Unfortunately, your application was not selected this time. Keep applying!"],
        contact_name=contact_name,
        channel=NotificationChannelEnum.IN_APP,
    )


def render_shipping_shipped(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    campaign = _campaign_label(data)
    courier = _clean_str(data.get("courier")) or "the courier"
    tracking_number = _clean_str(data.get("tracking_number")) or "n/a"
    tracking_url = _clean_str(data.get("tracking_url"))
    lines = [
        f'Your product for "{campaign}" is on the way!',
        f"Courier: {courier}",
        f"Tracking number: {tracking_number}",
    ]
    if tracking_url:
        lines.append(f"Track your package: {tracking_url}")
    lines.append("Once it arrives, create and upload your content before the campaign deadline.")
    return _render(
        subject=f"Your {campaign} package has shipped",
        title="Your Product Has Shipped!",
        lines=lines,
        contact_name=contact_name,
        channel=NotificationChannelEnum.BOTH,
    )


def render_delivered(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    campaign = _campaign_label(data)
    return _render(
        subject=f"Your {campaign} package was delivered",
        title="Package Delivered!",
        lines=[f"Your package for {campaign} has been delivered. Time to create amazing content!"],
        contact_name=contact_name,
        channel=NotificationChannelEnum.IN_APP,
    )


def render_upload_verified(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    campaign = _campaign_label(data)
    points = data.get("points", 0)
    lines = [f"Your video for {campaign} has been verified. You earned {points} points!"]
    bonus = data.get("bonus_points")
    if bonus:
        lines.append(f"First upload bonus: +{bonus} points.")
    return _render(
        subject=f"Upload verified for {campaign}",
        title="Upload Verified!",
        lines=lines,
        contact_name=contact_name,
        channel=NotificationChannelEnum.BOTH,
    )


def render_deadline_missed(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    penalty = data.get("penalty", 0)
    return _render(
        subject=f"Deadline missed for {_campaign_label(data)}",
        title="Deadline Missed",
        lines=[f"You missed the content deadline. A penalty of {penalty} points has been applied."],
        contact_name=contact_name,
        channel=NotificationChannelEnum.IN_APP,
    )


_TIER_COPY = {
    "standard": (
        "Standard Influencer Status!",
        "Congratulations! You've completed your first campaign and reached Standard status.",
    ),
    "vip": (
        "VIP Status Achieved!",
        "Congratulations! You've reached VIP status. Enjoy auto-approval on new campaigns.",
    ),
}


def render_tier_upgraded(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    tier = str(data.get("tier") or "standard")
    title, message = _TIER_COPY.get(tier, (f"{tier.title()} Status!", f"You've reached {tier} status."))
    return _render(
        subject=title,
        title=title,
        lines=[message],
        contact_name=contact_name,
        channel=NotificationChannelEnum.BOTH,
    )


def render_account_status(data: Mapping[str, Any], *, contact_name: str | None) -> RenderedTemplate:
    status = str(data.get("status") or "updated")
    title = f"Account {status}"
    lines = [f"Your creator account has been {status}."]
    reason = _clean_str(data.get("reason"))
    if reason:
        lines.append(f"Reason: {reason}")
    return _render(
        subject=title,
        title=title,
        lines=lines,
        contact_name=contact_name,
        channel=NotificationChannelEnum.BOTH,
    )


TemplateRenderer = Callable[..., RenderedTemplate]

TEMPLATES: dict[str, TemplateRenderer] = {
    "approved": render_application_approved,
    "rejected": render_application_rejected,
    "shipping_shipped": render_shipping_shipped,
    "delivered": render_delivered,
    "upload_verified": render_upload_verified,
    "deadline_missed": render_deadline_missed,
    "tier_upgraded": render_tier_upgraded,
    "account_status": render_account_status,
}


def render_notification(
    event_type: str,
    data: Mapping[str, Any],
    *,
    contact_name: str | None,
) -> RenderedTemplate:
    renderer = TEMPLATES.get(event_type)
    if renderer is None:
        raise KeyError(f"No notification template registered for {event_type}")
    return renderer(data, contact_name=contact_name)
