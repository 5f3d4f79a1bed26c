"""Teacher registration and the account lifecycle.

A teacher account moves through: requested (signed up, unapproved) ->
approved with mark entry enabled -> mark entry revoked/granted any number
of times, with activity toggled on an independent axis -> deleted.
``can_enter_marks`` is never true while ``is_approved`` is false.
"""
import logging
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from resultportal import db
from resultportal.errors import Conflict, NotFound, ValidationError
from resultportal.models import ACCOUNT_STATUSES, Account, Mark, PreRegisteredTeacher

logger = logging.getLogger(__name__)

APPROVAL_GRANT_REASON = 'Initial access granted upon approval'
TOGGLE_GRANT_REASON = 'Access granted by admin'


def _clean(value):
    return value.strip() if isinstance(value, str) else ''

def _commit(conflict_message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(conflict_message)

# --- Admins ---

def add_admin(email, password_hash, name='Administrator'):
    """Stage an approved admin account; the caller commits."""
    admin = Account(
        name=name,
        email=email.strip().lower(),
        password_hash=password_hash,
        role='admin',
        is_approved=True,
        status='active',
    )
    db.session.add(admin)
    return admin

# --- Pre-registration ---

def pre_register_teacher(name, register_number):
    name = _clean(name)
    register_number = _clean(register_number)
    if not name or not register_number:
        raise ValidationError('Name and register number are required')
    if PreRegisteredTeacher.query.filter_by(register_number=register_number).first():
        raise Conflict('Register number already exists')
    entry = PreRegisteredTeacher(name=name, register_number=register_number)
    db.session.add(entry)
    _commit('Register number already exists')
    logger.info("Pre-registered teacher %s (%s)", name, register_number)
    return entry

def list_pre_registered():
    return PreRegisteredTeacher.query.order_by(
        PreRegisteredTeacher.created_at.desc(), PreRegisteredTeacher.id.desc()
    ).all()

def delete_pre_registered(entry_id):
    entry = db.session.get(PreRegisteredTeacher, entry_id)
    if entry is None:
        raise NotFound('Pre-registered teacher not found')
    db.session.delete(entry)
    db.session.commit()
    logger.info("Deleted pre-registration %s", entry.register_number)

# --- Signup ---

def signup(name, email, password, register_number):
    """Create an unapproved teacher account, consuming a pre-registration entry."""
    name = _clean(name)
    email = _clean(email).lower()
    register_number = _clean(register_number)
    if not name or not email or not password or not isinstance(password, str):
        raise ValidationError('Name, email and password are required')
    if not register_number:
        raise ValidationError('Register number is required')
    min_len = int(current_app.config.get('PASSWORD_MIN_LENGTH', 6))
    if len(password) < min_len:
        raise ValidationError(f'Password must be at least {min_len} characters')
    if Account.query.filter_by(email=email).first():
        raise Conflict('Email already registered')
    if Account.query.filter_by(register_number=register_number).first():
        raise Conflict('Register number already in use')

    entry = PreRegisteredTeacher.query.filter_by(
        name=name, register_number=register_number, is_registered=False
    ).first()
    if entry is None:
        raise ValidationError('Invalid teacher details. Please check your name and register number')

    entry.is_registered = True
    account = Account(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        register_number=register_number,
        role='teacher',
        is_approved=False,
        status='active',
        can_enter_marks=False,
    )
    db.session.add(account)
    _commit('Email or register number already registered')
    logger.info("Teacher %s signed up with register number %s", email, register_number)
    return account

# --- Queries ---

def list_teachers():
    return Account.query.filter_by(role='teacher').order_by(Account.name.asc()).all()

def list_teacher_requests():
    return Account.query.filter_by(role='teacher', is_approved=False, status='active') \
        .order_by(Account.created_at.asc()).all()

def get_teacher(account_id):
    account = db.session.get(Account, account_id)
    if account is None:
        raise NotFound('Teacher not found')
    if not account.is_teacher:
        raise ValidationError('User is not a teacher')
    return account

# --- Lifecycle transitions ---

def _record_grant(account, admin, reason):
    account.can_enter_marks = True
    account.granted_by_id = admin.id
    account.granted_at = datetime.utcnow()
    account.grant_reason = reason

def approve(account_id, admin):
    account = get_teacher(account_id)
    if account.is_approved:
        raise Conflict('Teacher is already approved')
    account.is_approved = True
    account.status = 'active'
    _record_grant(account, admin, APPROVAL_GRANT_REASON)
    db.session.commit()
    logger.info("Admin %s approved teacher %s", admin.email, account.email)
    return account

def reject(account_id, admin):
    account = get_teacher(account_id)
    if account.is_approved:
        raise ValidationError('Only pending teacher requests can be rejected')
    email = account.email
    db.session.delete(account)
    db.session.commit()
    logger.info("Admin %s rejected teacher request %s", admin.email, email)

def grant_mark_entry(account_id, admin, reason):
    reason = _clean(reason)
    if not reason:
        raise ValidationError('A reason is required to grant mark entry access')
    account = get_teacher(account_id)
    if not account.is_approved:
        raise ValidationError('Teacher must be approved before mark entry can be granted')
    if account.can_enter_marks:
        raise Conflict('Mark entry is already enabled')
    _record_grant(account, admin, reason)
    db.session.commit()
    logger.info("Admin %s granted mark entry to %s: %s", admin.email, account.email, reason)
    return account

def revoke_mark_entry(account_id, admin):
    account = get_teacher(account_id)
    if not account.can_enter_marks:
        raise Conflict('Mark entry is already disabled')
    account.can_enter_marks = False
    db.session.commit()
    logger.info("Admin %s revoked mark entry from %s", admin.email, account.email)
    return account

def toggle_mark_entry(account_id, admin, reason=None):
    account = get_teacher(account_id)
    if account.can_enter_marks:
        return revoke_mark_entry(account_id, admin)
    return grant_mark_entry(account_id, admin, _clean(reason) or TOGGLE_GRANT_REASON)

def set_activity(account_id, admin, status):
    if status not in ACCOUNT_STATUSES:
        raise ValidationError('Invalid status value')
    account = get_teacher(account_id)
    account.status = status
    db.session.commit()
    logger.info("Admin %s set teacher %s %s", admin.email, account.email, status)
    return account

def delete_account(account_id, admin):
    """Remove a teacher account; marks they entered keep the author's name."""
    account = get_teacher(account_id)
    email = account.email
    Mark.query.filter_by(teacher_id=account.id).update(
        {'teacher_id': None, 'entered_by_name': account.name}, synchronize_session=False
    )
    Account.query.filter_by(granted_by_id=account.id).update(
        {'granted_by_id': None}, synchronize_session=False
    )
    db.session.delete(account)
    db.session.commit()
    logger.info("Admin %s deleted teacher %s", admin.email, email)
