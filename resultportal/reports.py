"""Read-only statistics over the mark ledger for the dashboards."""
from flask import current_app
from sqlalchemy import case, func

from resultportal import db
from resultportal.errors import ValidationError
from resultportal.models import Mark, Student


def top_limit(requested=None):
    """Resolve the top-N size from a ``?limit=`` value or the configured default."""
    if requested is None or requested == '':
        return int(current_app.config.get('TOP_PERFORMERS_LIMIT', 5))
    try:
        limit = int(requested)
    except (TypeError, ValueError):
        raise ValidationError('limit must be an integer')
    maximum = int(current_app.config.get('TOP_PERFORMERS_MAX', 50))
    if limit < 1 or limit > maximum:
        raise ValidationError(f'limit must be between 1 and {maximum}')
    return limit

def _scoped(query, teacher_id):
    if teacher_id is not None:
        query = query.filter(Mark.teacher_id == teacher_id)
    return query

def success_rate(teacher_id=None):
    """Percentage of Pass marks, rounded to a whole number (0 with no marks)."""
    total, passed = _scoped(
        db.session.query(
            func.count(Mark.id),
            func.coalesce(func.sum(case((Mark.result == 'Pass', 1), else_=0)), 0),
        ),
        teacher_id,
    ).one()
    if not total:
        return 0
    return round(passed / total * 100)

def class_performance(teacher_id=None):
    score = Mark.ce + Mark.te
    rows = _scoped(
        db.session.query(
            Student.class_name,
            func.count(Mark.id),
            func.avg(score),
            func.sum(case((Mark.result == 'Pass', 1), else_=0)),
            func.count(func.distinct(Mark.student_id)),
        ).select_from(Mark).join(Student, Student.id == Mark.student_id),
        teacher_id,
    ).group_by(Student.class_name).order_by(Student.class_name.asc()).all()
    return [
        {
            'class': class_name,
            'totalMarks': total,
            'averageScore': round(float(avg or 0), 2),
            'passPercentage': round(passed / total * 100, 2) if total else 0,
            'studentCount': students,
        }
        for class_name, total, avg, passed, students in rows
    ]

def top_performers(limit, teacher_id=None):
    """Students ranked by average CE+TE across their marks, best first."""
    average = func.avg(Mark.ce + Mark.te).label('average_score')
    rows = _scoped(
        db.session.query(Student, average, func.count(Mark.id))
        .select_from(Mark).join(Student, Student.id == Mark.student_id),
        teacher_id,
    ).group_by(Student.id).order_by(average.desc(), Student.name.asc()).limit(limit).all()
    return [
        {
            'id': student.id,
            'name': student.name,
            'admissionNumber': student.admission_number,
            'class': student.class_name,
            'averageScore': round(float(avg), 2),
            'totalMarks': count,
        }
        for student, avg, count in rows
    ]

def admin_dashboard(limit):
    return {
        'totalStudents': Student.query.count(),
        'totalClasses': db.session.query(func.count(func.distinct(Student.class_name))).scalar() or 0,
        'successRate': success_rate(),
        'topPerformers': top_performers(limit),
        'classPerformance': class_performance(),
    }

def teacher_dashboard(teacher_id, limit):
    return {
        'totalMarks': Mark.query.filter_by(teacher_id=teacher_id).count(),
        'successRate': success_rate(teacher_id),
        'topPerformers': top_performers(limit, teacher_id),
        'classPerformance': class_performance(teacher_id),
    }
