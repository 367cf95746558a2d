"""
Registration, login and token rotation for shop owners.
"""
import logging
from typing import Dict, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import AuthenticationException, ConflictException
from apps.messaging.email import send_welcome_email
from .models import Account
from .tokens import generate_access_token, generate_refresh_token, verify_refresh_token

logger = logging.getLogger(__name__)


def _issue_tokens(account: Account) -> Dict[str, str]:
    access_token = generate_access_token(account.id)
    refresh_token = generate_refresh_token(account.id)
    account.refresh_token = refresh_token
    return {'accessToken': access_token, 'refreshToken': refresh_token}


def register(name: str, email: str, password: str, phone: str = None) -> Tuple[Account, Dict[str, str]]:
    email = email.strip().lower()
    if Account.objects.filter(email=email).exists():
        raise ConflictException("User already exists with this email")

    account = Account(name=name, email=email, phone=phone)
    account.set_password(password)
    account.apply_plan_limits()
    tokens = _issue_tokens(account)
    try:
        with transaction.atomic():
            account.save()
    except IntegrityError:
        raise ConflictException("User already exists with this email")

    logger.info(f"Registered account {account.id}")
    if not send_welcome_email(account.email, account.name):
        logger.warning(f"Welcome email not sent to account {account.id}")
    return account, tokens


def login(email: str, password: str) -> Tuple[Account, Dict[str, str]]:
    account = Account.objects.filter(email=email.strip().lower()).first()
    if account is None or not account.check_password(password):
        raise AuthenticationException("Invalid email or password")
    if not account.is_active:
        raise AuthenticationException("Your account has been deactivated. Please contact support.")

    account.last_login = timezone.now()
    tokens = _issue_tokens(account)
    account.save(update_fields=['last_login', 'refresh_token', 'updated_at'])
    logger.info(f"Account {account.id} logged in")
    return account, tokens


def refresh_access_token(refresh_token: str) -> str:
    """A fresh access token for a refresh token matching the stored one."""
    account_id = verify_refresh_token(refresh_token)
    if account_id is None:
        raise AuthenticationException("Invalid or expired refresh token")

    account = Account.objects.filter(pk=account_id, is_active=True).first()
    if account is None or account.refresh_token != refresh_token:
        raise AuthenticationException("Invalid refresh token")
    return generate_access_token(account.id)


def logout(account: Account) -> None:
    account.refresh_token = None
    account.save(update_fields=['refresh_token', 'updated_at'])
