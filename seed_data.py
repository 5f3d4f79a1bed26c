from resultportal import app, db
from resultportal import accounts, ledger
from resultportal.errors import Conflict
from resultportal.models import Account, PreRegisteredTeacher
from werkzeug.security import generate_password_hash
import random

SUBJECTS = ['English', 'Mathematics', 'Physics', 'Chemistry', 'Biology']


def seed():
    with app.app_context():
        print("Seeding database...")

        # Create Admin User if not exists
        admin = Account.query.filter_by(email='admin@school.local').first()
        if not admin:
            admin = accounts.add_admin('admin@school.local', generate_password_hash('admin123'))
            db.session.commit()
            print("Created admin user.")

        # Pre-register and sign up teachers
        teachers = []
        for i in range(1, 4):
            register_number = f"TR{i:03d}"
            name = f"Teacher {i}"
            if not PreRegisteredTeacher.query.filter_by(register_number=register_number).first():
                accounts.pre_register_teacher(name, register_number)
            teacher = Account.query.filter_by(register_number=register_number).first()
            if not teacher:
                teacher = accounts.signup(name, f"teacher{i}@school.local", 'teacher123', register_number)
            if not teacher.is_approved and i < 3:
                accounts.approve(teacher.id, admin)
            teachers.append(teacher)
        print(f"Teachers ready: {len(teachers)} (last one left pending approval).")

        # Students and marks
        created = 0
        classes = app.config['CLASS_NAMES']
        for n in range(1, 21):
            payload_base = {
                'name': f"Student {n}",
                'admissionNumber': f"ADM{n:04d}",
                'class': classes[n % len(classes)],
            }
            teacher = teachers[n % 2]
            for subject in random.sample(SUBJECTS, 3):
                payload = dict(payload_base, subject=subject,
                               ce=random.randint(5, 30), te=random.randint(10, 70))
                try:
                    ledger.submit(teacher, payload)
                    created += 1
                except Conflict:
                    pass
        print(f"Created {created} marks.")
        print("Seeding complete.")


if __name__ == '__main__':
    seed()
