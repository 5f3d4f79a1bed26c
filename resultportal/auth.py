"""Session tokens and the per-request capability check.

The token only identifies the caller. Every protected request re-reads
the account row, so an admin revoking approval, activity or mark-entry
takes effect on the caller's very next request.
"""
import logging
from functools import wraps

from flask import current_app, g, request
from sqlalchemy import func
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from werkzeug.security import check_password_hash

from resultportal import db
from resultportal.errors import Forbidden, Unauthenticated
from resultportal.models import Account

logger = logging.getLogger(__name__)

TOKEN_SALT = 'auth-session'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)

def issue_token(account):
    return _serializer().dumps({
        'id': account.id,
        'email': account.email,
        'role': account.role,
        'isApproved': account.is_approved,
    })

def read_token(token):
    """Return the claims carried by ``token`` or raise Unauthenticated."""
    if not token:
        raise Unauthenticated()
    try:
        return _serializer().loads(token, max_age=current_app.config['AUTH_TOKEN_MAX_AGE'])
    except SignatureExpired:
        raise Unauthenticated('Session expired')
    except BadSignature:
        raise Unauthenticated('Invalid token')

def set_auth_cookie(response, account):
    response.set_cookie(
        current_app.config['AUTH_COOKIE_NAME'],
        issue_token(account),
        max_age=current_app.config['AUTH_TOKEN_MAX_AGE'],
        httponly=True,
        secure=current_app.config['AUTH_COOKIE_SECURE'],
        samesite='Lax',
    )
    return response

def clear_auth_cookie(response):
    response.delete_cookie(current_app.config['AUTH_COOKIE_NAME'])
    return response

def authenticate(email, password, register_number=None):
    """Check login credentials and return the matching account."""
    email = (email or '').strip().lower()
    register_number = (register_number or '').strip()
    if not email or not password or not isinstance(password, str):
        raise Unauthenticated('Invalid credentials')
    account = Account.query.filter(func.lower(Account.email) == email).first()
    if account is None or not check_password_hash(account.password_hash, password):
        raise Unauthenticated('Invalid credentials')
    if register_number and (account.register_number or '').lower() != register_number.lower():
        raise Unauthenticated('Invalid credentials')
    return account

def load_session_account():
    """Resolve the request's session cookie to a live account row."""
    claims = read_token(request.cookies.get(current_app.config['AUTH_COOKIE_NAME']))
    account = db.session.get(Account, claims.get('id'))
    if account is None or account.email != claims.get('email'):
        raise Unauthenticated('Account no longer exists')
    g.claims = claims
    g.account = account
    return account


class Capability:
    """What a caller must currently be allowed to do.

    Evaluated against the live account row, never against token claims.
    """

    def __init__(self, role=None, approved=False, active=False, mark_entry=False):
        self.role = role
        self.approved = approved
        self.active = active
        self.mark_entry = mark_entry

    def check(self, account):
        if self.role and account.role != self.role:
            raise Forbidden()
        if self.approved and not account.is_approved:
            raise Forbidden('Account is awaiting admin approval')
        if self.active and not account.is_active:
            raise Forbidden('Account is inactive')
        if self.mark_entry and not (account.is_approved and account.can_enter_marks):
            raise Forbidden("You don't have permission to enter marks at this time")
        return account

    def __repr__(self):
        return (f"Capability(role={self.role!r}, approved={self.approved}, "
                f"active={self.active}, mark_entry={self.mark_entry})")


AUTHENTICATED = Capability()
ADMIN = Capability(role='admin')
APPROVED_TEACHER = Capability(role='teacher', approved=True)
MARK_ENTRY = Capability(role='teacher', approved=True, active=True, mark_entry=True)


def requires(capability):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            account = load_session_account()
            try:
                capability.check(account)
            except Forbidden as e:
                logger.warning("Denied %s %s for account %s: %s",
                               request.method, request.path, account.id, e.message)
                raise
            return fn(*args, **kwargs)
        return wrapper
    return decorator
