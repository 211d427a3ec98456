from types import SimpleNamespace
from unittest import mock

import requests
from django.test import SimpleTestCase, override_settings

from apps.notifications.services import Notifier, format_money, get_notifier


def make_order(**overrides):
    values = {
        "order_number": "HS-20260314-001",
        "customer_name": "Jess Carter",
        "customer_email": "jess@example.com",
        "product_type": "personal",
        "quantity": 6,
        "total": 4800,
        "shipping_type": "delivery",
        "tracking_number": "AP123",
        "carrier": "AusPost",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_notifier(**overrides):
    options = {
        "resend_api_key": "re_test",
        "resend_api_url": "https://resend.test/emails",
        "email_from": "Heartsnaps <orders@heartsnaps.test>",
        "admin_email": "staff@heartsnaps.test",
        "ntfy_url": "https://ntfy.test/",
        "ntfy_topic": "heartsnaps-orders",
        "site_url": "https://shop.test",
        "timeout": 5,
    }
    options.update(overrides)
    return Notifier(**options)


@mock.patch("apps.notifications.services.requests.post")
class NotifierTests(SimpleTestCase):
    def test_order_confirmation_email(self, post):
        self.assertTrue(make_notifier().order_confirmation(make_order()))

        post.assert_called_once()
        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        self.assertEqual(url, "https://resend.test/emails")
        self.assertEqual(body["to"], "jess@example.com")
        self.assertEqual(body["subject"], "Order Confirmed: HS-20260314-001")
        self.assertIn("$48.00", body["html"])
        self.assertIn("https://shop.test/track.html?order=HS-20260314-001", body["html"])
        self.assertEqual(post.call_args.kwargs["headers"]["Authorization"], "Bearer re_test")
        self.assertEqual(post.call_args.kwargs["timeout"], 5)

    def test_staff_alert_pushes_and_emails(self, post):
        self.assertTrue(make_notifier().staff_alert(make_order()))

        self.assertEqual(post.call_count, 2)
        push, email = post.call_args_list
        self.assertEqual(push.args[0], "https://ntfy.test/heartsnaps-orders")
        self.assertEqual(push.kwargs["headers"]["Title"], "New Order! HS-20260314-001")
        self.assertIn(b"6x personal magnets", push.kwargs["data"])
        self.assertEqual(email.kwargs["json"]["to"], "staff@heartsnaps.test")

    def test_dispatch_notice_mentions_tracking(self, post):
        make_notifier().order_dispatched(make_order())
        self.assertIn("AP123", post.call_args.kwargs["json"]["html"])

        make_notifier().order_dispatched(make_order(shipping_type="pickup"))
        self.assertTrue(post.call_args.kwargs["json"]["subject"].startswith("Ready for pickup"))

    def test_disabled_channels_send_nothing(self, post):
        notifier = make_notifier(resend_api_key="", ntfy_topic="")
        self.assertFalse(notifier.order_confirmation(make_order()))
        self.assertFalse(notifier.staff_alert(make_order()))
        self.assertFalse(make_notifier().order_confirmation(make_order(customer_email="")))
        post.assert_not_called()

    def test_failures_are_logged_not_raised(self, post):
        post.side_effect = requests.ConnectionError("unreachable")
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            self.assertFalse(make_notifier().order_confirmation(make_order()))

        post.side_effect = None
        post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        with self.assertLogs("apps.notifications.services", level="ERROR"):
            self.assertFalse(make_notifier().staff_alert(make_order()))


class NotifierConfigTests(SimpleTestCase):
    @override_settings(RESEND_API_KEY="re_live", NTFY_TOPIC="shop", ADMIN_EMAIL="a@b.test", NOTIFICATION_TIMEOUT=3)
    def test_built_from_settings(self):
        notifier = get_notifier()
        self.assertTrue(notifier.email_enabled)
        self.assertTrue(notifier.push_enabled)
        self.assertEqual(notifier.admin_email, "a@b.test")
        self.assertEqual(notifier.timeout, 3)

    def test_format_money(self):
        self.assertEqual(format_money(4800), "$48.00")
        self.assertEqual(format_money(5), "$0.05")
