from resultportal import db
from datetime import datetime

ROLES = ('admin', 'teacher')
ACCOUNT_STATUSES = ('active', 'inactive')
RESULTS = ('Pass', 'Fail')


def _num(value):
    if value is None:
        return None
    return int(value) if float(value).is_integer() else value

def _iso(value):
    return value.isoformat() if value else None

class Account(db.Model):
    # Ids of deleted accounts are never handed out again
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='teacher')
    register_number = db.Column(db.String(50), unique=True)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(20), nullable=False, default='active')
    can_enter_marks = db.Column(db.Boolean, nullable=False, default=False)
    # Last mark-entry grant
    granted_by_id = db.Column(db.Integer, db.ForeignKey('account.id', ondelete='SET NULL'))
    granted_at = db.Column(db.DateTime)
    grant_reason = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    marks = db.relationship('Mark', backref='teacher', lazy=True, foreign_keys='Mark.teacher_id')

    @property
    def is_teacher(self):
        return self.role == 'teacher'

    @property
    def is_active(self):
        return self.status == 'active'

    @property
    def last_mark_entry_access(self):
        if self.granted_at is None:
            return None
        return {
            'grantedBy': self.granted_by_id,
            'grantedAt': _iso(self.granted_at),
            'reason': self.grant_reason,
        }

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'isApproved': self.is_approved,
            'status': self.status,
        }
        if self.is_teacher:
            data.update({
                'registerNumber': self.register_number,
                'canEnterMarks': self.can_enter_marks,
                'lastMarkEntryAccess': self.last_mark_entry_access,
            })
        data['createdAt'] = _iso(self.created_at)
        return data

    def __repr__(self):
        return f"Account('{self.email}', role='{self.role}', approved={self.is_approved})"

class PreRegisteredTeacher(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    register_number = db.Column(db.String(50), unique=True, nullable=False)
    is_registered = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'registerNumber': self.register_number,
            'isRegistered': self.is_registered,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"PreRegisteredTeacher('{self.name}', '{self.register_number}', registered={self.is_registered})"

class Student(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    admission_number = db.Column(db.String(50), unique=True, nullable=False)
    class_name = db.Column('class', db.String(20), nullable=False, index=True)
    academic_year = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    marks = db.relationship('Mark', backref='student', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'admissionNumber': self.admission_number,
            'class': self.class_name,
            'academicYear': self.academic_year,
        }

    def __repr__(self):
        return f"Student('{self.admission_number}', '{self.name}', class='{self.class_name}')"

class Mark(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('account.id', ondelete='SET NULL'), index=True)
    entered_by_name = db.Column(db.String(100))
    subject = db.Column(db.String(100), nullable=False)
    ce = db.Column(db.Float, nullable=False)
    te = db.Column(db.Float, nullable=False)
    total = db.Column(db.Float, nullable=False)
    result = db.Column(db.String(4), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    __table_args__ = (db.UniqueConstraint('student_id', 'subject', name='uix_mark_student_subject'),)

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'teacherId': self.teacher_id,
            'enteredBy': self.entered_by_name,
            'subject': self.subject,
            'ce': _num(self.ce),
            'te': _num(self.te),
            'total': _num(self.total),
            'result': self.result,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"Mark(student_id={self.student_id}, subject='{self.subject}', total={self.total}, result='{self.result}')"
