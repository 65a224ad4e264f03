"""
Delivery adapter used by the flush step.

Resolves the recipient of a ScheduledNotification to an address on the first
configured channel that can reach them and hands the rendered message over.
"""

import logging
from typing import Dict, Optional, Tuple

from core.config_loader import DeliveryConfig
from database.models import ScheduledNotification, User
from notification.channels import NotificationChannel, NotificationChannelFactory, _mask_email
from notification.message_builder import NotificationMessageBuilder

logger = logging.getLogger(__name__)


class Deliverer:
    def __init__(
        self,
        config: Optional[DeliveryConfig] = None,
        channels: Optional[Dict[str, NotificationChannel]] = None,
    ):
        self.config = config or DeliveryConfig()
        self._channels: Dict[str, NotificationChannel] = dict(channels or {})

    def _channel(self, channel_type: str) -> NotificationChannel:
        if channel_type not in self._channels:
            self._channels[channel_type] = NotificationChannelFactory.get_channel(channel_type, self.config)
        return self._channels[channel_type]

    def _resolve(self, user: User) -> Tuple[Optional[str], Optional[str]]:
        for channel_type in self.config.channels:
            if channel_type == 'email' and user.email:
                return channel_type, user.email
            if channel_type == 'webhook':
                url = user.webhook_url or self.config.webhook_url
                if url:
                    return channel_type, url
            if channel_type == 'in_app':
                return channel_type, str(user.id)
        return None, None

    def deliver(self, notification: ScheduledNotification) -> bool:
        """
        Deliver one notification.

        Returns False when the recipient cannot be reached; channel exceptions
        (TransientDeliveryError) propagate to the caller.
        """
        user = notification.recipient
        if user is None or not user.is_active:
            logger.warning(f"Notification {notification.id}: recipient {notification.recipient_id} missing or inactive")
            return False

        channel_type, address = self._resolve(user)
        if channel_type is None:
            logger.warning(f"Notification {notification.id}: no configured channel reaches user {user.id}")
            return False

        metadata = {
            'notification_id': notification.id,
            'category': notification.category.value,
            'priority': notification.priority.value,
            'subject_type': notification.subject_type,
            'subject_id': notification.subject_id,
            'link': NotificationMessageBuilder.build_link(
                self.config.base_url, notification.subject_type, notification.subject_id
            ),
            'data': notification.payload or {},
        }
        logger.debug(
            f"Delivering notification {notification.id} via {channel_type} to "
            f"{_mask_email(address) if channel_type == 'email' else user.id}"
        )
        return self._channel(channel_type).send(address, notification.title, notification.message, metadata)
