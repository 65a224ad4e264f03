#!/usr/bin/env python3
"""
Notification Channels

Each channel delivers one rendered notification to one recipient address.
Channels return False for permanent problems (not configured, unsafe address)
and raise TransientDeliveryError for failures worth retrying on the next
flush; either way the scheduled row stays pending.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('email', config.delivery)
    channel.send(recipient, subject, body, metadata)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import logging
import os
import html

import requests
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import urllib.parse
import ipaddress
import socket

from core.config_loader import DeliveryConfig
from core.exceptions import TransientDeliveryError

logger = logging.getLogger(__name__)


def _validate_webhook_url(url: str) -> bool:
    """
    Validate webhook URL to prevent SSRF attacks.

    Checks:
    - Scheme is http or https
    - Hostname resolves to public IP (not private/loopback)
    """
    parsed = urllib.parse.urlparse(url)

    if parsed.scheme not in ('http', 'https'):
        logger.error(f"Invalid URL scheme: {parsed.scheme}")
        return False

    if not parsed.hostname:
        logger.error("URL missing hostname")
        return False

    try:
        addrinfo = socket.getaddrinfo(parsed.hostname, None)
    except socket.gaierror:
        logger.error(f"Could not resolve hostname: {parsed.hostname}")
        return False

    for _, _, _, _, sockaddr in addrinfo:
        ip = ipaddress.ip_address(sockaddr[0])
        if ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local:
            logger.error(f"URL resolves to private/reserved IP: {ip}")
            return False

    return True


def _safe_url(url: str) -> str:
    parsed = urllib.parse.urlparse(url)
    return f"{parsed.scheme}://{parsed.hostname}{parsed.path}"


def _is_dry_run_mode(config: Optional[DeliveryConfig] = None) -> bool:
    """Check if notification channels should run in dry-run (log-only) mode."""
    if config is not None and config.dry_run:
        return True
    return os.environ.get('NOTIFICATION_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _mask_email(email: str) -> str:
    """
    Mask email address for safe logging (PII protection).

    Shows only domain, e.g., "***@example.com"
    """
    if '@' not in email:
        return "***"
    local, domain = email.rsplit('@', 1)
    return f"***@{domain}"


class NotificationChannel(ABC):
    """
    Abstract base class for all notification channels.

    All notification channels must implement this interface.
    """

    def __init__(self, config: Optional[DeliveryConfig] = None):
        self.config = config or DeliveryConfig()

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Send a notification through this channel.

        Args:
            recipient: Target recipient (format depends on channel)
            subject: Notification subject/title
            body: Notification body
            metadata: Additional channel-specific metadata

        Returns:
            True if sent successfully, False on a permanent failure

        Raises:
            TransientDeliveryError: the attempt may succeed later
        """
        pass

    def validate_config(self) -> bool:
        return True

    @property
    def dry_run(self) -> bool:
        return _is_dry_run_mode(self.config)


class EmailChannel(NotificationChannel):
    """Email notification channel via SMTP."""

    @property
    def channel_type(self) -> str:
        return 'email'

    def validate_config(self) -> bool:
        smtp = self.config.smtp
        return bool(smtp.host and smtp.port and smtp.from_email)

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if self.dry_run:
            logger.info(f"[DRY RUN] Email to {_mask_email(recipient)}: {subject}")
            return True

        if not self.validate_config():
            logger.error("Email not configured - SMTP host/port/from address not set")
            return False

        smtp = self.config.smtp
        msg = MIMEMultipart('alternative')
        msg['From'] = smtp.from_email
        msg['To'] = recipient
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'plain', 'utf-8'))
        msg.attach(MIMEText(self._build_html_body(subject, body, metadata), 'html', 'utf-8'))

        try:
            with smtplib.SMTP(smtp.host, smtp.port, timeout=self.config.timeout_seconds) as server:
                if smtp.use_tls:
                    server.starttls()
                if smtp.user and smtp.password:
                    server.login(smtp.user, smtp.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise TransientDeliveryError(f"SMTP delivery to {_mask_email(recipient)} failed: {e}") from e

        logger.info(f"Email sent to {_mask_email(recipient)}")
        return True

    def _build_html_body(self, subject: str, body: str, metadata: Dict[str, Any]) -> str:
        safe_subject = html.escape(subject)
        safe_body = html.escape(body)
        link = metadata.get('link')
        link_html = ""
        if link and urllib.parse.urlparse(link).scheme in ('http', 'https'):
            link_html = f'<p><a href="{html.escape(link, quote=True)}">View details</a></p>'
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\"></head><body>"
            f"<h2>{safe_subject}</h2><p>{safe_body}</p>{link_html}"
            "</body></html>"
        )


class WebhookChannel(NotificationChannel):
    """Generic webhook notification channel; `recipient` is the URL."""

    @property
    def channel_type(self) -> str:
        return 'webhook'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        webhook_url = recipient
        if self.dry_run:
            logger.info(f"[DRY RUN] Webhook to {_safe_url(webhook_url)}: {subject}")
            return True

        if not _validate_webhook_url(webhook_url):
            logger.error(f"Invalid or unsafe webhook URL: {_safe_url(webhook_url)}")
            return False

        payload = {
            'type': 'placement_notification',
            'subject': subject,
            'body': body,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'metadata': metadata,
        }
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': 'Placement-Notification-Service/1.0',
        }

        try:
            response = requests.post(
                webhook_url,
                json=payload,
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientDeliveryError(f"Webhook delivery to {_safe_url(webhook_url)} failed: {e}") from e

        logger.info(f"Webhook sent to {_safe_url(webhook_url)}")
        return True


class InAppChannel(NotificationChannel):
    """
    In-app notification channel.

    The scheduled_notification row is itself the in-app record; marking it sent
    is what makes it visible, so there is nothing to transmit.
    """

    @property
    def channel_type(self) -> str:
        return 'in_app'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        logger.info(f"[IN_APP] User: {recipient}, Title: {subject}")
        return True


class NotificationChannelFactory:
    """
    Factory for creating notification channels.

    New channels can be registered at runtime with register_channel().
    """

    _channels: Dict[str, type] = {
        'email': EmailChannel,
        'webhook': WebhookChannel,
        'in_app': InAppChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str, config: Optional[DeliveryConfig] = None) -> NotificationChannel:
        """
        Get a notification channel instance by type.

        Raises:
            ValueError: If channel type is not registered
        """
        channel_class = cls._channels.get(channel_type.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")
        return channel_class(config)

    @classmethod
    def register_channel(cls, channel_type: str, channel_class: type):
        if not issubclass(channel_class, NotificationChannel):
            raise ValueError("Channel class must extend NotificationChannel")
        cls._channels[channel_type.lower()] = channel_class
        logger.info(f"Registered new channel type: {channel_type}")

    @classmethod
    def list_channels(cls) -> list:
        return list(cls._channels.keys())
