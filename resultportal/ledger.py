"""Mark ledger: one CE/TE record per student per subject.

Marks are written only through ``submit``; a second submission for the
same (student, subject) pair is a Conflict, whether it is caught by the
pre-check or by the database's unique constraint when two requests race.
"""
import logging
import math
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from resultportal import db
from resultportal.errors import Conflict, NotFound, ValidationError
from resultportal.models import Mark, Student

logger = logging.getLogger(__name__)

CE_MAX = 30
TE_MAX = 70
PASS_TOTAL = 40
CE_PASS_MIN = 15
TE_PASS_MIN = 28


# --- Pass/fail rules ---

def pass_by_total(ce, te):
    """Pass when CE + TE reaches 40."""
    return 'Pass' if ce + te >= PASS_TOTAL else 'Fail'

def pass_by_components(ce, te):
    """Pass only when CE reaches 15 and TE reaches 28."""
    return 'Pass' if ce >= CE_PASS_MIN and te >= TE_PASS_MIN else 'Fail'

PASS_RULES = {
    'total': pass_by_total,
    'components': pass_by_components,
}

def compute_result(ce, te, rule=None):
    rule = rule or current_app.config.get('PASS_RULE', 'total')
    try:
        return PASS_RULES[rule](ce, te)
    except KeyError:
        raise ValueError(f"Unknown pass rule: {rule}")

# --- Validation ---

def validate_score(value, label, maximum):
    if value is None or value == '':
        raise ValidationError(f'{label} score is required')
    if isinstance(value, bool):
        raise ValidationError(f'{label} score must be a number')
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} score must be a number')
    if math.isnan(score) or score < 0 or score > maximum:
        raise ValidationError(f'{label} score must be between 0 and {maximum}')
    return score

def validate_class(class_name):
    class_name = (class_name or '').strip() if isinstance(class_name, str) else ''
    if not class_name:
        raise ValidationError('Class is required')
    if class_name not in current_app.config['CLASS_NAMES']:
        raise ValidationError(f'Unknown class: {class_name}')
    return class_name

# --- Students ---

def student_id_from(value):
    """Coerce a submitted ``studentId`` to an int primary key."""
    if isinstance(value, bool):
        raise ValidationError('studentId must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError('studentId must be an integer')

def get_student(student_id):
    student = db.session.get(Student, student_id_from(student_id))
    if student is None:
        raise NotFound('Student not found')
    return student

def find_student(admission_number):
    return Student.query.filter_by(admission_number=admission_number).first()

def list_students(class_name):
    class_name = validate_class(class_name)
    return Student.query.filter_by(class_name=class_name).order_by(Student.name.asc()).all()

def _student_fields(name, admission_number, class_name):
    name = name.strip() if isinstance(name, str) else ''
    admission_number = admission_number.strip() if isinstance(admission_number, str) else ''
    if not name or not admission_number or not class_name:
        raise ValidationError('Name, admission number, and class are required')
    return name, admission_number, validate_class(class_name)

def create_student(name, admission_number, class_name):
    """Return ``(student, created)``; an existing admission number is returned as is."""
    name, admission_number, class_name = _student_fields(name, admission_number, class_name)
    existing = find_student(admission_number)
    if existing:
        return existing, False
    student = Student(
        name=name,
        admission_number=admission_number,
        class_name=class_name,
        academic_year=str(datetime.utcnow().year),
    )
    db.session.add(student)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return Student.query.filter_by(admission_number=admission_number).one(), False
    return student, True

def resolve_student(data):
    """Find the student a submission refers to, creating or updating it as needed.

    Changes are flushed, not committed; the caller owns the transaction.
    """
    if data.get('studentId') is not None:
        return get_student(data['studentId'])
    name, admission_number, class_name = _student_fields(
        data.get('name'), data.get('admissionNumber'), data.get('class')
    )
    student = find_student(admission_number)
    if student is None:
        student = Student(
            name=name,
            admission_number=admission_number,
            class_name=class_name,
            academic_year=str(datetime.utcnow().year),
        )
        db.session.add(student)
    else:
        if student.name != name:
            student.name = name
        if student.class_name != class_name:
            student.class_name = class_name
    db.session.flush()
    return student

# --- Marks ---

def find_mark(student_id, subject):
    return Mark.query.filter_by(student_id=student_id, subject=subject).first()

def _resolve_student_once_more(data):
    """Resolve the student, retrying once if another request created it first."""
    try:
        return resolve_student(data)
    except IntegrityError:
        db.session.rollback()
        logger.info("Admission number %s was created concurrently; retrying", data.get('admissionNumber'))
        return resolve_student(data)

def submit(teacher, data):
    """Record one subject's CE/TE marks for a student on behalf of ``teacher``."""
    subject = data.get('subject')
    subject = subject.strip() if isinstance(subject, str) else ''
    if not subject:
        raise ValidationError('Subject is required')
    ce = validate_score(data.get('ce'), 'CE', CE_MAX)
    te = validate_score(data.get('te'), 'TE', TE_MAX)
    duplicate = f'Marks for {subject} already exist for this student'

    student_id = None
    try:
        student = _resolve_student_once_more(data)
        student_id = student.id
        if find_mark(student_id, subject):
            raise Conflict(duplicate)
        mark = Mark(
            student_id=student_id,
            teacher_id=teacher.id,
            entered_by_name=teacher.name,
            subject=subject,
            ce=ce,
            te=te,
            total=ce + te,
            result=compute_result(ce, te),
        )
        db.session.add(mark)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # Only the (student, subject) key makes this a duplicate submission
        if student_id is not None and find_mark(student_id, subject) is not None:
            raise Conflict(duplicate)
        raise
    except Exception:
        db.session.rollback()
        raise

    logger.info("Teacher %s entered %s for %s: total=%s result=%s",
                teacher.email, subject, student.admission_number, mark.total, mark.result)
    _mirror(student, mark)
    return mark

def _mirror(student, mark):
    mirror = current_app.extensions.get('sheet_mirror')
    if mirror is None:
        return
    row = mark.to_dict()
    row.update({
        'studentName': student.name,
        'admissionNumber': student.admission_number,
        'submittedAt': row['createdAt'],
    })
    try:
        mirror.mirror(student.class_name, row)
    except Exception:
        logger.exception("Spreadsheet mirror failed for mark %s", mark.id)

def list_by_student(student_id):
    get_student(student_id)
    return Mark.query.filter_by(student_id=student_id).order_by(Mark.subject.asc()).all()

def list_by_teacher(teacher_id):
    return Mark.query.filter_by(teacher_id=teacher_id) \
        .order_by(Mark.created_at.desc(), Mark.id.desc()).all()

def result_for_admission_number(admission_number):
    student = Student.query.filter_by(admission_number=(admission_number or '').strip()).first()
    if student is None:
        raise NotFound('Student not found')
    marks = Mark.query.filter_by(student_id=student.id).order_by(Mark.subject.asc()).all()
    subjects = []
    for m in marks:
        d = m.to_dict()
        subjects.append({
            'name': d['subject'],
            'ce': d['ce'],
            'te': d['te'],
            'total': d['total'],
            'result': d['result'],
        })
    return {
        'name': student.name,
        'class': student.class_name,
        'admission_number': student.admission_number,
        'subjects': subjects,
    }
