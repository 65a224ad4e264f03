#!/usr/bin/env python3
"""
Tests for notification channels and the delivery adapter.

Usage:
    python -m pytest tests/unit/notification/test_delivery_channels.py -v
"""

import os
import smtplib
import socket
import unittest
from unittest.mock import Mock, patch

import requests

from core.config_loader import DeliveryConfig, SmtpConfig
from core.exceptions import TransientDeliveryError
from database.models import NotificationCategory, NotificationPriority, ScheduledNotification, User, UserRole
from notification.channels import (
    EmailChannel,
    InAppChannel,
    NotificationChannel,
    NotificationChannelFactory,
    WebhookChannel,
    _mask_email,
    _validate_webhook_url,
)
from notification.delivery import Deliverer

PUBLIC_ADDRINFO = [(socket.AF_INET, socket.SOCK_STREAM, 6, '', ('93.184.216.34', 443))]
PRIVATE_ADDRINFO = [(socket.AF_INET, socket.SOCK_STREAM, 6, '', ('10.0.0.5', 443))]


def smtp_config(**overrides):
    values = dict(host='smtp.example.com', port=587, user='bot', password='pw', from_email='placements@example.com')
    values.update(overrides)
    return DeliveryConfig(smtp=SmtpConfig(**values))


class ChannelTestCase(unittest.TestCase):

    def setUp(self):
        env = patch.dict(os.environ, {}, clear=False)
        env.start()
        self.addCleanup(env.stop)
        os.environ.pop('NOTIFICATION_DRY_RUN', None)


class TestEmailChannel(ChannelTestCase):

    def test_validation_requires_from_address(self):
        self.assertFalse(EmailChannel(smtp_config(from_email=None)).validate_config())
        self.assertTrue(EmailChannel(smtp_config()).validate_config())

    def test_unconfigured_channel_is_permanent_failure(self):
        with patch('notification.channels.smtplib.SMTP') as mock_smtp_class:
            self.assertFalse(EmailChannel(smtp_config(from_email=None)).send('a@b.com', 'S', 'B', {}))
            mock_smtp_class.assert_not_called()

    @patch('notification.channels.smtplib.SMTP')
    def test_send_success(self, mock_smtp_class):
        mock_smtp = Mock()
        mock_smtp_class.return_value.__enter__ = Mock(return_value=mock_smtp)
        mock_smtp_class.return_value.__exit__ = Mock(return_value=False)

        result = EmailChannel(smtp_config()).send(
            'dana@example.com', 'Deadline tomorrow', 'Apply now', {'link': 'http://localhost:8080/x'},
        )

        self.assertTrue(result)
        mock_smtp_class.assert_called_once_with('smtp.example.com', 587, timeout=30)
        mock_smtp.starttls.assert_called_once()
        mock_smtp.login.assert_called_once_with('bot', 'pw')
        message = mock_smtp.send_message.call_args[0][0]
        self.assertEqual(message['To'], 'dana@example.com')
        self.assertEqual(message['Subject'], 'Deadline tomorrow')

    @patch('notification.channels.smtplib.SMTP')
    def test_smtp_error_is_transient(self, mock_smtp_class):
        mock_smtp_class.side_effect = smtplib.SMTPConnectError(421, b'busy')
        with self.assertRaises(TransientDeliveryError):
            EmailChannel(smtp_config()).send('dana@example.com', 'S', 'B', {})

    @patch('notification.channels.smtplib.SMTP')
    def test_dry_run_sends_nothing(self, mock_smtp_class):
        config = smtp_config()
        config.dry_run = True
        self.assertTrue(EmailChannel(config).send('dana@example.com', 'S', 'B', {}))
        mock_smtp_class.assert_not_called()

    @patch('notification.channels.smtplib.SMTP')
    def test_dry_run_from_environment(self, mock_smtp_class):
        os.environ['NOTIFICATION_DRY_RUN'] = 'true'
        self.assertTrue(EmailChannel(smtp_config()).send('dana@example.com', 'S', 'B', {}))
        mock_smtp_class.assert_not_called()

    def test_html_body_is_escaped(self):
        body = EmailChannel(smtp_config())._build_html_body(
            '<b>Hi</b>', 'a & b', {'link': 'javascript:alert(1)'},
        )
        self.assertIn('&lt;b&gt;Hi&lt;/b&gt;', body)
        self.assertIn('a &amp; b', body)
        self.assertNotIn('javascript', body)

    def test_mask_email(self):
        self.assertEqual(_mask_email('dana@example.com'), '***@example.com')
        self.assertEqual(_mask_email('nobody'), '***')


class TestWebhookChannel(ChannelTestCase):

    @patch('notification.channels.socket.getaddrinfo', return_value=PUBLIC_ADDRINFO)
    def test_url_validation(self, _):
        self.assertTrue(_validate_webhook_url('https://hooks.example.com/x'))
        self.assertFalse(_validate_webhook_url('ftp://hooks.example.com/x'))
        self.assertFalse(_validate_webhook_url('https:///nohost'))

    @patch('notification.channels.socket.getaddrinfo', return_value=PRIVATE_ADDRINFO)
    def test_private_address_rejected(self, _):
        self.assertFalse(_validate_webhook_url('https://internal.example.com/x'))

    @patch('notification.channels.socket.getaddrinfo', side_effect=socket.gaierror)
    def test_unresolvable_host_rejected(self, _):
        self.assertFalse(_validate_webhook_url('https://nowhere.invalid/x'))

    @patch('notification.channels.requests.post')
    @patch('notification.channels.socket.getaddrinfo', return_value=PUBLIC_ADDRINFO)
    def test_send_success(self, _, mock_post):
        mock_post.return_value = Mock(status_code=200)
        result = WebhookChannel(DeliveryConfig()).send(
            'https://hooks.example.com/x', 'Subject', 'Body', {'category': 'DEADLINE'},
        )
        self.assertTrue(result)
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['type'], 'placement_notification')
        self.assertEqual(payload['metadata'], {'category': 'DEADLINE'})

    @patch('notification.channels.requests.post')
    @patch('notification.channels.socket.getaddrinfo', return_value=PRIVATE_ADDRINFO)
    def test_unsafe_url_is_permanent_failure(self, _, mock_post):
        self.assertFalse(WebhookChannel(DeliveryConfig()).send('https://internal/x', 'S', 'B', {}))
        mock_post.assert_not_called()

    @patch('notification.channels.requests.post')
    @patch('notification.channels.socket.getaddrinfo', return_value=PUBLIC_ADDRINFO)
    def test_http_error_is_transient(self, _, mock_post):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        mock_post.return_value = response
        with self.assertRaises(TransientDeliveryError):
            WebhookChannel(DeliveryConfig()).send('https://hooks.example.com/x', 'S', 'B', {})


class TestChannelFactory(unittest.TestCase):

    def test_known_channels(self):
        self.assertIsInstance(NotificationChannelFactory.get_channel('email'), EmailChannel)
        self.assertIsInstance(NotificationChannelFactory.get_channel('WEBHOOK'), WebhookChannel)
        self.assertIsInstance(NotificationChannelFactory.get_channel('in_app'), InAppChannel)

    def test_unknown_channel(self):
        with self.assertRaises(ValueError):
            NotificationChannelFactory.get_channel('carrier_pigeon')

    def test_register_channel(self):
        class SmsChannel(NotificationChannel):
            channel_type = 'sms'

            def send(self, recipient, subject, body, metadata):
                return True

        NotificationChannelFactory.register_channel('sms', SmsChannel)
        self.addCleanup(NotificationChannelFactory._channels.pop, 'sms')
        self.assertIn('sms', NotificationChannelFactory.list_channels())
        with self.assertRaises(ValueError):
            NotificationChannelFactory.register_channel('bad', dict)


class TestDeliverer(unittest.TestCase):

    def notification(self, user):
        return ScheduledNotification(
            id=5,
            recipient=user,
            recipient_id=user.id if user else 1,
            category=NotificationCategory.DEADLINE,
            priority=NotificationPriority.HIGH,
            subject_type='application',
            subject_id=7,
            title='Deadline tomorrow',
            message='Apply now',
            payload={'days_until': 1},
        )

    def user(self, **kwargs):
        values = dict(id=3, name='Dana', email='dana@example.com', role=UserRole.CANDIDATE, is_active=True)
        values.update(kwargs)
        return User(**values)

    def test_first_reachable_channel_is_used(self):
        email, webhook = Mock(), Mock()
        webhook.send.return_value = True
        config = DeliveryConfig(channels=['webhook', 'email'])
        deliverer = Deliverer(config, channels={'email': email, 'webhook': webhook})

        self.assertTrue(deliverer.deliver(self.notification(self.user(webhook_url='https://hooks.example.com/d'))))
        webhook.send.assert_called_once()
        email.send.assert_not_called()
        address, title, message, metadata = webhook.send.call_args[0]
        self.assertEqual(address, 'https://hooks.example.com/d')
        self.assertEqual(title, 'Deadline tomorrow')
        self.assertEqual(metadata['priority'], 'HIGH')
        self.assertEqual(metadata['data'], {'days_until': 1})

    def test_falls_back_to_email(self):
        email = Mock()
        email.send.return_value = True
        deliverer = Deliverer(DeliveryConfig(channels=['webhook', 'email']), channels={'email': email})
        self.assertTrue(deliverer.deliver(self.notification(self.user())))
        self.assertEqual(email.send.call_args[0][0], 'dana@example.com')

    def test_unreachable_or_inactive_recipient(self):
        deliverer = Deliverer(DeliveryConfig(channels=['webhook']))
        self.assertFalse(deliverer.deliver(self.notification(self.user())))
        self.assertFalse(deliverer.deliver(self.notification(self.user(is_active=False))))

    def test_in_app_always_reaches(self):
        deliverer = Deliverer(DeliveryConfig(channels=['in_app']))
        self.assertTrue(deliverer.deliver(self.notification(self.user(email=None))))

    def test_transient_errors_propagate(self):
        email = Mock()
        email.send.side_effect = TransientDeliveryError("smtp down")
        deliverer = Deliverer(DeliveryConfig(channels=['email']), channels={'email': email})
        with self.assertRaises(TransientDeliveryError):
            deliverer.deliver(self.notification(self.user()))


if __name__ == '__main__':
    unittest.main()
