"""
Bearer token authentication for the dashboard API.
"""
from rest_framework import authentication, exceptions

from apps.accounts.models import Account
from apps.accounts.tokens import verify_access_token


class BearerTokenAuthentication(authentication.BaseAuthentication):
    """
    ``Authorization: Bearer <access token>``. Requests without the header
    are left anonymous; a bad or expired token is rejected outright.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].decode().lower() != self.keyword.lower():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header.')

        account_id = verify_access_token(header[1].decode())
        if account_id is None:
            raise exceptions.AuthenticationFailed('Token is invalid or has expired. Please login again.')

        account = Account.objects.filter(pk=account_id).first()
        if account is None:
            raise exceptions.AuthenticationFailed('User not found. Please login again.')
        if not account.is_active:
            raise exceptions.AuthenticationFailed('Your account has been deactivated. Please contact support.')

        return account, None

    def authenticate_header(self, request):
        return self.keyword
