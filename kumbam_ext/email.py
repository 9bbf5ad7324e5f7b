"""SMTP notification sink used to deliver one-time passcodes."""
from __future__ import annotations

import smtplib
from contextlib import contextmanager
from email.message import EmailMessage
from typing import Any, Iterator, Mapping, Protocol

from flask import Flask, current_app, render_template

EXTENSION_KEY = "kumbam_notifier"

_SUBJECTS = {
    "login": "Your OTP - {app_name}",
    "password_reset": "Your {app_name} Password Reset OTP",
    "resend": "Your {app_name} OTP Code",
}


class NotificationSink(Protocol):
    """Anything able to hand an OTP to its owner."""

    def send_otp(self, email: str, code: str, *, purpose: str) -> None: ...


class SmtpOtpMailer:
    """Render OTP emails from templates and deliver them over SMTP."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        use_ssl: bool = False,
        timeout: int = 15,
        suppress: bool = False,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.use_tls = use_tls and not use_ssl
        self.timeout = timeout
        self.suppress = suppress

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SmtpOtpMailer":
        return cls(
            host=config.get("SMTP_HOST", "localhost"),
            port=int(config.get("SMTP_PORT", 587)),
            sender=config.get("EMAIL_FROM") or config.get("SMTP_USER", ""),
            username=config.get("SMTP_USER", ""),
            password=config.get("SMTP_PASS", ""),
            use_tls=bool(config.get("SMTP_USE_TLS", True)),
            use_ssl=bool(config.get("SMTP_USE_SSL", False)),
            timeout=int(config.get("SMTP_TIMEOUT", 15)),
            suppress=bool(config.get("MAIL_SUPPRESS_SEND", False)),
        )

    @contextmanager
    def _connection(self) -> Iterator[smtplib.SMTP]:
        """Yield a logged-in SMTP connection and always quit it afterwards."""
        if self.use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            yield server
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                current_app.logger.debug("SMTP quit failed", exc_info=True)

    def build_message(self, email: str, code: str, *, purpose: str) -> EmailMessage:
        if not self.sender:
            raise RuntimeError("EMAIL_FROM is not configured")
        app_name = current_app.config.get("APP_NAME", "KUMBAM")
        context = {
            "app_name": app_name,
            "otp": code,
            "purpose": purpose,
            "expiry_minutes": int(current_app.config.get("OTP_TTL_MINUTES", 5)),
        }
        msg = EmailMessage()
        msg["Subject"] = _SUBJECTS.get(purpose, _SUBJECTS["login"]).format(app_name=app_name)
        msg["From"] = self.sender
        msg["To"] = email
        msg.set_content(render_template("emails/otp.txt", **context))
        msg.add_alternative(render_template("emails/otp.html", **context), subtype="html")
        return msg

    def send_otp(self, email: str, code: str, *, purpose: str) -> None:
        msg = self.build_message(email, code, purpose=purpose)
        if self.suppress:
            current_app.logger.info(
                "Email suppressed (MAIL_SUPPRESS_SEND=true)",
                extra={"email": email, "purpose": purpose, "component": "email"},
            )
            return
        with self._connection() as smtp:
            smtp.send_message(msg)
        current_app.logger.info("OTP email dispatched", extra={"email": email, "purpose": purpose, "component": "email"})


def init_app(app: Flask, notifier: NotificationSink | None = None) -> None:
    """Install the notification sink, building the SMTP mailer unless one is given."""
    app.extensions[EXTENSION_KEY] = notifier or SmtpOtpMailer.from_config(app.config)


def get_notifier() -> NotificationSink:
    return current_app.extensions[EXTENSION_KEY]
