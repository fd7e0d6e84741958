"""Recipient notification: frequency policy, email rendering and SMTP delivery."""

from __future__ import annotations

import abc
import logging
import smtplib
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Callable, Dict, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from ..config import (
    FRONTEND_URL,
    NOTIFICATION_WORKERS,
    SMTP_FROM,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_USER,
)
from ..exceptions import (
    FatalPipelineFailure,
    NotificationFailure,
    PersistenceFailure,
    StoreUnavailable,
)
from ..models import (
    Frequency,
    NotificationPreferences,
    NotificationRecord,
    PersistedEvent,
    Recipient,
)
from ..sources.base import CancellationToken
from ..utils import get_current_timestamp
from .scoring import RelevanceScorer
from .storage import RecipientStore

logger = logging.getLogger(__name__)

MIN_RECIPIENT_SCORE: float = 0.3
IMMEDIATE_THRESHOLD: float = 0.7

FREQUENCY_WINDOWS: Dict[str, timedelta] = {
    Frequency.DAILY.value: timedelta(hours=24),
    Frequency.WEEKLY.value: timedelta(days=7),
}

# (minimum score, level, colour), highest first
RISK_LEVELS = (
    (0.8, "CRITICAL", "#dc3545"),
    (0.6, "HIGH", "#fd7e14"),
    (0.4, "MEDIUM", "#ffc107"),
)
LOW_RISK = ("LOW", "#28a745")

_LOCK_STRIPES = 64

_env: Environment | None = None


def get_template_env() -> Environment:
    """Return the shared Jinja2 environment for the bundled email templates."""
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("geo_alerts", "templates"),
            autoescape=select_autoescape(["html"]),
        )
    return _env


def get_risk_level(score: float) -> str:
    for threshold, level, _ in RISK_LEVELS:
        if score >= threshold:
            return level
    return LOW_RISK[0]


def get_risk_color(score: float) -> str:
    for threshold, _, color in RISK_LEVELS:
        if score >= threshold:
            return color
    return LOW_RISK[1]


def should_notify(
    preferences: NotificationPreferences,
    score: float,
    last_sent: datetime | None,
    now: datetime,
) -> bool:
    """Apply the recipient's email switch and frequency setting.

    ``immediate`` needs a high score, ``daily``/``weekly`` need a quiet
    period since the last notification of any event, and any other value
    never sends.
    """
    if not preferences.email_enabled:
        return False
    if preferences.frequency == Frequency.IMMEDIATE.value:
        return score >= IMMEDIATE_THRESHOLD
    window = FREQUENCY_WINDOWS.get(preferences.frequency or "")
    if window is None:
        return False
    return last_sent is None or last_sent < now - window


def alert_subject(event: PersistedEvent) -> str:
    return f"Geopolitical Alert: {event.title}"


def render_alert_email(
    recipient: Recipient,
    event: PersistedEvent,
    score: float,
    rationale: str,
    *,
    frontend_url: str = FRONTEND_URL,
) -> str:
    """Render the HTML body of one alert."""
    candidate = event.event
    event_date = candidate.event_date.strftime("%Y-%m-%d") if candidate.event_date else "Unknown"
    template = get_template_env().get_template("alert_email.html")
    return template.render(
        recipient_name=recipient.name or recipient.email,
        event=candidate,
        event_date=event_date,
        score=score,
        rationale=rationale,
        risk_level=get_risk_level(score),
        risk_color=get_risk_color(score),
        frontend_url=frontend_url.rstrip("/"),
    )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------
class NotificationTransport(abc.ABC):
    @abc.abstractmethod
    def send(self, to: str, subject: str, html_body: str) -> str:
        """Deliver one message and return its message id.

        Raises :class:`NotificationFailure` when delivery fails.
        """


class SMTPTransport(NotificationTransport):
    """Email delivery over SMTP with STARTTLS."""

    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        user: str | None = SMTP_USER,
        password: str | None = SMTP_PASS,
        from_addr: str = SMTP_FROM,
        *,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr
        self.use_tls = use_tls
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _deliver(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            server.login(self.user, self.password)
            server.send_message(msg)

    def send(self, to: str, subject: str, html_body: str) -> str:
        if not self.is_configured():
            raise NotificationFailure("SMTP transport is not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to
        msg["Message-ID"] = make_msgid(domain=self.from_addr.rpartition("@")[2] or None)
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            self._deliver(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(f"failed to send to {to}: {exc}") from exc

        logger.info("Notification email sent: %s", msg["Message-ID"])
        return msg["Message-ID"]

    def test_configuration(self, to: str = "test@example.com") -> bool:
        """Send a plain test message; return whether it was accepted."""
        msg = MIMEMultipart()
        msg["Subject"] = "Test Email - Geopolitical Intelligence Platform"
        msg["From"] = self.from_addr
        msg["To"] = to
        msg.attach(MIMEText("This is a test email to verify the notification system is working.", "plain"))
        try:
            self._deliver(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Test email failed: %s", exc)
            return False
        logger.info("Test email sent successfully to %s", to)
        return True


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class DispatchReport:
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False

    def merge(self, other: "DispatchReport") -> None:
        self.sent += other.sent
        self.skipped += other.skipped
        self.failed += other.failed
        self.cancelled = self.cancelled or other.cancelled


class NotificationDispatcher:
    """Score every (event, recipient) pair and send the qualifying alerts.

    Recipients are handled in parallel by a bounded pool. All events for
    one recipient are processed by a single task, and a per-recipient lock
    covers policy evaluation through the record append, so one recipient
    can never be sent two alerts on the strength of the same quiet period.
    """

    def __init__(
        self,
        recipients: RecipientStore,
        scorer: RelevanceScorer,
        transport: NotificationTransport,
        *,
        workers: int = NOTIFICATION_WORKERS,
        now: Callable[[], datetime] = get_current_timestamp,
        frontend_url: str = FRONTEND_URL,
    ) -> None:
        self.recipients = recipients
        self.scorer = scorer
        self.transport = transport
        self.workers = max(1, workers)
        self._now = now
        self.frontend_url = frontend_url
        self._locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]

    def dispatch(
        self,
        events: Sequence[PersistedEvent],
        cancel: CancellationToken | None = None,
    ) -> DispatchReport:
        report = DispatchReport()
        if not events:
            return report

        try:
            recipients = self.recipients.list_all()
        except StoreUnavailable as exc:
            raise FatalPipelineFailure(f"cannot list recipients: {exc}") from exc
        if not recipients:
            logger.info("No recipients registered, skipping notifications")
            return report

        with ThreadPoolExecutor(
            max_workers=min(self.workers, len(recipients)), thread_name_prefix="notify"
        ) as pool:
            futures = [
                pool.submit(self._notify_recipient, recipient, events, cancel)
                for recipient in recipients
            ]
            for future in futures:
                try:
                    report.merge(future.result())
                except StoreUnavailable as exc:
                    raise FatalPipelineFailure(f"recipient store unavailable: {exc}") from exc

        logger.info(
            "Notifications: %d sent, %d skipped, %d failed",
            report.sent,
            report.skipped,
            report.failed,
        )
        return report

    def _notify_recipient(
        self,
        recipient: Recipient,
        events: Sequence[PersistedEvent],
        cancel: CancellationToken | None,
    ) -> DispatchReport:
        report = DispatchReport()
        lock = self._locks[hash(recipient.id) % _LOCK_STRIPES]
        # Sends from this task count even when the notification log write failed.
        sent_here: datetime | None = None
        for event in events:
            if cancel is not None and cancel.cancelled:
                report.cancelled = True
                break

            try:
                result = self.scorer.score(recipient, event.event)
            except Exception as exc:  # one failed pair must not stop the others
                logger.error("Failed to score '%s' for %s: %s", event.title, recipient.id, exc)
                report.failed += 1
                continue
            if result.score <= MIN_RECIPIENT_SCORE or not recipient.email:
                report.skipped += 1
                continue

            with lock:
                last_sent = None
                if recipient.preferences.frequency in FREQUENCY_WINDOWS:
                    last_sent = self.recipients.last_notification_time(recipient.id)
                    if sent_here is not None and (last_sent is None or sent_here > last_sent):
                        last_sent = sent_here
                if not should_notify(recipient.preferences, result.score, last_sent, self._now()):
                    report.skipped += 1
                    continue

                sent_at = self._send(recipient, event, result.score, result.rationale, report)
                if sent_at is not None:
                    report.sent += 1
                    sent_here = sent_at
        return report

    def _send(
        self,
        recipient: Recipient,
        event: PersistedEvent,
        score: float,
        rationale: str,
        report: DispatchReport,
    ) -> datetime | None:
        """Render and deliver one alert; return the send time or ``None`` on failure."""
        try:
            html = render_alert_email(
                recipient, event, score, rationale, frontend_url=self.frontend_url
            )
            message_id = self.transport.send(recipient.email, alert_subject(event), html)
        except Exception as exc:  # one failed pair must not stop the others
            logger.error(
                "Failed to send notification for '%s' to %s: %s", event.title, recipient.email, exc
            )
            report.failed += 1
            return None

        sent_at = self._now()
        record = NotificationRecord(
            recipient_id=recipient.id,
            event_id=event.id,
            score_at_send=score,
            sent_at=sent_at,
            message_id=message_id,
        )
        try:
            self.recipients.record_notification(record)
        except PersistenceFailure as exc:
            logger.error("Sent alert to %s but could not log it: %s", recipient.email, exc)
        return sent_at


__all__ = [
    "MIN_RECIPIENT_SCORE",
    "IMMEDIATE_THRESHOLD",
    "get_risk_level",
    "get_risk_color",
    "should_notify",
    "alert_subject",
    "render_alert_email",
    "NotificationTransport",
    "SMTPTransport",
    "DispatchReport",
    "NotificationDispatcher",
]
