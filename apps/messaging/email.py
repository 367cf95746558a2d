"""
Transactional email.

Sends are best-effort: a mail failure is logged and reported as False,
never raised, so registration and payment verification are unaffected.
"""
import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to LocalBiz AI!"
PAYMENT_SUBJECT = "Payment Successful - Subscription Activated"


def _send(to: str, subject: str, text: str, html: str) -> bool:
    try:
        send_mail(
            subject,
            text,
            settings.DEFAULT_FROM_EMAIL,
            [to],
            html_message=html,
            fail_silently=False,
        )
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email send error to {to}: {e}")
        return False


def send_welcome_email(to: str, name: str) -> bool:
    dashboard_url = f"{settings.FRONTEND_URL}/dashboard"
    text = (
        f"Welcome to LocalBiz AI, {name}!\n\n"
        "You can now manage products and inventory, track orders and customers, "
        "send WhatsApp messages and get AI-powered business insights.\n\n"
        f"Go to your dashboard: {dashboard_url}\n"
    )
    html = (
        f"<h2>Welcome to LocalBiz AI, {name}!</h2>"
        "<p>Thank you for joining LocalBiz AI - your digital business assistant.</p>"
        "<ul>"
        "<li>Manage products and inventory</li>"
        "<li>Track orders and customers</li>"
        "<li>Send WhatsApp messages automatically</li>"
        "<li>Get AI-powered business insights</li>"
        "</ul>"
        f'<p><a href="{dashboard_url}">Go to Dashboard</a></p>'
    )
    return _send(to, WELCOME_SUBJECT, text, html)


def send_payment_confirmation(to: str, plan: str, amount, valid_until) -> bool:
    valid = valid_until.strftime('%d %b %Y') if valid_until else '-'
    text = (
        f"Your {plan} plan subscription has been activated.\n"
        f"Amount paid: Rs. {amount}\n"
        f"Valid until: {valid}\n"
    )
    html = (
        "<h2>Payment Successful!</h2>"
        f"<p>Your {plan} plan subscription has been activated.</p>"
        f"<p><strong>Amount Paid:</strong> &#8377;{amount}</p>"
        f"<p><strong>Valid Until:</strong> {valid}</p>"
        f'<p><a href="{settings.FRONTEND_URL}/dashboard">Go to Dashboard</a></p>'
    )
    return _send(to, PAYMENT_SUBJECT, text, html)
