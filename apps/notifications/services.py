import logging

import requests
from django.conf import settings
from django.template.loader import render_to_string
from requests import RequestException

logger = logging.getLogger(__name__)

PRODUCT_LABELS = {"personal": "Personal Magnets", "business": "Business Magnets"}


def format_money(amount):
    return f"${amount / 100:.2f}"


class Notifier:
    """Outbound email (Resend) and push (ntfy) for order events.

    Every send is best effort: failures are logged and reported as False,
    never raised to the caller.
    """

    def __init__(
        self,
        *,
        resend_api_key="",
        resend_api_url="https://api.resend.com/emails",
        email_from="",
        admin_email="",
        ntfy_url="https://ntfy.sh",
        ntfy_topic="",
        site_url="",
        timeout=10.0,
    ):
        self.resend_api_key = resend_api_key
        self.resend_api_url = resend_api_url
        self.email_from = email_from
        self.admin_email = admin_email
        self.ntfy_url = ntfy_url.rstrip("/")
        self.ntfy_topic = ntfy_topic
        self.site_url = site_url.rstrip("/")
        self.timeout = timeout

    @property
    def email_enabled(self):
        return bool(self.resend_api_key)

    @property
    def push_enabled(self):
        return bool(self.ntfy_topic)

    def send_email(self, to, subject, html):
        if not self.email_enabled or not to:
            return False
        try:
            response = requests.post(
                self.resend_api_url,
                json={"from": self.email_from, "to": to, "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.resend_api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except RequestException:
            logger.exception("Failed to send email %r to %s", subject, to)
            return False
        return True

    def send_push(self, title, message, tags="", priority="default"):
        if not self.push_enabled:
            return False
        try:
            response = requests.post(
                f"{self.ntfy_url}/{self.ntfy_topic}",
                data=message.encode("utf-8"),
                headers={"Title": title, "Priority": priority, "Tags": tags},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except RequestException:
            logger.exception("Failed to send push notification %r", title)
            return False
        return True

    def _context(self, order):
        return {
            "order": order,
            "product_label": PRODUCT_LABELS.get(order.product_type, order.product_type),
            "total": format_money(order.total),
            "tracking_url": f"{self.site_url}/track.html?order={order.order_number}",
            "admin_url": f"{self.site_url}/admin.html",
        }

    def order_confirmation(self, order):
        if not order.customer_email:
            return False
        html = render_to_string("notifications/order_confirmation.html", self._context(order))
        return self.send_email(order.customer_email, f"Order Confirmed: {order.order_number}", html)

    def staff_alert(self, order):
        context = self._context(order)
        message = (
            f"New Order: {order.order_number}\n"
            f"{order.quantity}x {order.product_type} magnets\n"
            f"Total: {context['total']}\n"
            f"Customer: {order.customer_name}"
        )
        pushed = self.send_push(f"New Order! {order.order_number}", message, tags="magnet,moneybag", priority="high")
        html = render_to_string("notifications/staff_alert.html", {**context, "message": message})
        emailed = self.send_email(self.admin_email, f"New Order: {order.order_number} - {context['total']}", html)
        return pushed or emailed

    def order_dispatched(self, order):
        if not order.customer_email:
            return False
        html = render_to_string("notifications/order_dispatched.html", self._context(order))
        if order.shipping_type == "pickup":
            subject = f"Ready for pickup: {order.order_number}"
        else:
            subject = f"Your order is on its way: {order.order_number}"
        return self.send_email(order.customer_email, subject, html)


def get_notifier():
    return Notifier(
        resend_api_key=settings.RESEND_API_KEY,
        resend_api_url=settings.RESEND_API_URL,
        email_from=settings.EMAIL_FROM,
        admin_email=settings.ADMIN_EMAIL,
        ntfy_url=settings.NTFY_URL,
        ntfy_topic=settings.NTFY_TOPIC,
        site_url=settings.SITE_URL,
        timeout=settings.NOTIFICATION_TIMEOUT,
    )


def order_paid(order):
    """Confirmation to the customer plus one staff alert. Called once per paid order."""
    notifier = get_notifier()
    notifier.order_confirmation(order)
    notifier.staff_alert(order)


def order_dispatched(order):
    get_notifier().order_dispatched(order)
